from app.database.connection import (
    MongoGateway,
    UpdateOutcome,
    parse_object_id,
    contains_text,
    USERS,
    LOANS,
    LOAN_APPLICATIONS,
)

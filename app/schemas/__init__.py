from app.schemas.loan_schema import (
    ApplicationStatusEnum,
    ApplicationFeeStatusEnum,
    LoanApplicationCreate,
    LoanProductCreate,
)
from app.schemas.user_schemas import UserRoleEnum, UserSignIn
from app.schemas.payment_schema import PaymentIntentRequest, PaymentIntentResponse

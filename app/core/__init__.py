from app.core.config import Settings, settings
from app.core.exceptions import (
    LoanLinkError,
    ValidationError,
    NotFoundError,
    StoreUnavailable,
    StoreOperationFailed,
    PaymentProviderError,
    DuplicateKey,
)

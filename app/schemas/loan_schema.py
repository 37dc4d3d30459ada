from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum
from typing import Any, Optional, Union

from app.utils.loan_application_utils import parse_loan_amount


class ApplicationStatusEnum(str, Enum):
    pending = "pending"
    approved = "Approved"
    rejected = "Rejected"


class ApplicationFeeStatusEnum(str, Enum):
    unpaid = "unpaid"
    paid = "paid"


class LoanApplicationCreate(BaseModel):
    """Fields a borrower submits when applying for a loan product.

    Only loanAmount is coerced; the other values are stored as sent.
    """
    loanTitle: Any = Field(..., description="Title of the loan product applied for")
    loanAmount: Union[int, float] = Field(..., description="Requested amount in major currency units")
    category: Any = Field(..., description="Loan product category")
    firstName: Any = Field(..., description="Applicant first name")
    lastName: Any = Field(..., description="Applicant last name")
    userEmail: Any = Field(..., description="Email of the applying user")

    @field_validator("loanAmount", mode="before")
    @classmethod
    def coerce_amount(cls, value):
        return parse_loan_amount(value)


class LoanProductCreate(BaseModel):
    """A loan product; any additional fields are stored as-is."""
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    loanTitle: Optional[str] = None
    category: str

    @property
    def display_title(self) -> Optional[str]:
        return self.title or self.loanTitle

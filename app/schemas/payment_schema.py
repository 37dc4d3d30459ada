from pydantic import BaseModel, Field, field_validator


class PaymentIntentRequest(BaseModel):
    price: float = Field(..., allow_inf_nan=False, description="Amount to charge in major currency units")

    @field_validator("price", mode="before")
    @classmethod
    def reject_bool(cls, value):
        if isinstance(value, bool):
            raise ValueError("price must be a number")
        return value


class PaymentIntentResponse(BaseModel):
    clientSecret: str

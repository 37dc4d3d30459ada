import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import NotFoundError, ValidationError
from app.database.connection import LOAN_APPLICATIONS, MongoGateway, UpdateOutcome, parse_object_id
from app.schemas.loan_schema import ApplicationFeeStatusEnum, ApplicationStatusEnum, LoanApplicationCreate
from app.utils.loan_application_utils import (
    REQUIRED_APPLICATION_FIELDS,
    missing_fields,
    utc_now,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


class LoanApplicationService:
    """Borrower applications: creation, review status and fee payment."""

    def __init__(self, gateway: MongoGateway):
        self.gateway = gateway

    # Creates a pending, unpaid application and returns its store id
    async def create_loan_application(self, payload: Dict[str, Any]) -> ObjectId:
        missing = missing_fields(payload, REQUIRED_APPLICATION_FIELDS)
        if missing:
            logger.warning(f"Loan application rejected, missing fields: {missing}")
            raise ValidationError("Missing required fields")

        try:
            request_data = LoanApplicationCreate.model_validate(payload)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = first["loc"][0] if first.get("loc") else "request"
            if field == "loanAmount":
                raise ValidationError("loanAmount must be a number") from e
            raise ValidationError(f"Invalid value for {field}") from e

        new_application = {
            **request_data.model_dump(),
            "status": ApplicationStatusEnum.pending.value,
            "applicationFeeStatus": ApplicationFeeStatusEnum.unpaid.value,
            "application_date": utc_now(),
        }
        inserted_id = await self.gateway.insert_one(LOAN_APPLICATIONS, new_application)
        logger.info(f"Loan application {inserted_id} created for {request_data.userEmail}")
        return inserted_id

    # Newest applications first
    async def get_loan_applications(self) -> List[Dict[str, Any]]:
        return await self.gateway.find_many(LOAN_APPLICATIONS, sort=[("application_date", -1)])

    async def get_loan_application(self, application_id: str) -> Dict[str, Any]:
        query = {"_id": parse_object_id(application_id)}
        application = await self.gateway.find_one(LOAN_APPLICATIONS, query)
        if not application:
            logger.warning(f"Loan application {application_id} not found")
            raise NotFoundError("Loan application not found")
        return application

    async def get_user_applications(self, email: str) -> List[Dict[str, Any]]:
        return await self.gateway.find_many(LOAN_APPLICATIONS, {"userEmail": email})

    async def get_pending_applications(self) -> List[Dict[str, Any]]:
        return await self.gateway.find_many(
            LOAN_APPLICATIONS, {"status": ApplicationStatusEnum.pending.value}
        )

    # Sets the review status; any status may follow any other
    async def update_application_status(
        self,
        application_id: str,
        new_status: Any,
        approved_at: Optional[Any] = None,
    ) -> UpdateOutcome:
        try:
            status_enum = ApplicationStatusEnum(new_status)
        except ValueError as e:
            logger.error(f"Invalid status value: {new_status}")
            raise ValidationError("Invalid status provided") from e

        query = {"_id": parse_object_id(application_id)}
        update = {"$set": {"status": status_enum.value, "approvedAt": approved_at or None}}
        outcome = await self.gateway.update_one(LOAN_APPLICATIONS, query, update)
        if outcome.matched_count == 0:
            raise NotFoundError("Application not found")

        logger.info(f"Application {application_id} set to {status_enum.value}")
        return outcome

    async def delete_loan_application(self, application_id: str) -> None:
        query = {"_id": parse_object_id(application_id)}
        deleted = await self.gateway.delete_one(LOAN_APPLICATIONS, query)
        if deleted != 1:
            raise NotFoundError("Application not found")
        logger.info(f"Application {application_id} cancelled")

    # Marks the application fee as paid; a missing application is not an error
    async def record_payment(self, application_id: str, transaction_id: Optional[str]) -> UpdateOutcome:
        query = {"_id": parse_object_id(application_id)}
        update = {
            "$set": {
                "paymentStatus": "paid",
                "applicationFeeStatus": ApplicationFeeStatusEnum.paid.value,
                "transactionId": transaction_id,
                "paidAt": utc_now_iso(),
            }
        }
        outcome = await self.gateway.update_one(LOAN_APPLICATIONS, query, update)
        logger.info(f"Payment recorded for application {application_id} (matched={outcome.matched_count})")
        return outcome

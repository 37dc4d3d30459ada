from fastapi import APIRouter, HTTPException, Depends, Body
from fastapi import status
from typing import Dict, Any, List, Optional
import logging

from app.core.auth_dependencies import APPLICATIONS_REVIEW, require_capability
from app.core.dependencies import get_loan_application_service
from app.core.exceptions import NotFoundError, StoreOperationFailed, ValidationError
from app.helpers.response_builder import build_update_response, convert_objectid, error_body, message_body
from app.services.loan_service import LoanApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Loan Applications"])


# Submits a new application in pending/unpaid state
@router.post("/apply-loan", status_code=status.HTTP_201_CREATED)
async def apply_for_loan(
    payload: Dict[str, Any] = Body(...),
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    try:
        inserted_id = await service.create_loan_application(payload)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except StoreOperationFailed as e:
        logger.error(f"Error applying for loan: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message_body("Server error"))
    return {"insertedId": str(inserted_id)}


@router.get("/loan-applications", response_model=List[Dict[str, Any]])
async def get_loan_applications(service: LoanApplicationService = Depends(get_loan_application_service)):
    try:
        applications = await service.get_loan_applications()
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return convert_objectid(applications)


@router.get("/loan-applications/user/{email}", response_model=List[Dict[str, Any]])
async def get_user_loan_applications(
    email: str,
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    try:
        applications = await service.get_user_applications(email)
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return convert_objectid(applications)


# Older clients still call the short path
router.add_api_route(
    "/my-loans/{email}",
    get_user_loan_applications,
    methods=["GET"],
    response_model=List[Dict[str, Any]],
)


@router.get("/pending-loans", response_model=List[Dict[str, Any]])
async def get_pending_loans(service: LoanApplicationService = Depends(get_loan_application_service)):
    try:
        pending = await service.get_pending_applications()
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return convert_objectid(pending)


@router.get("/loan-applications/{application_id}", response_model=Dict[str, Any])
async def get_loan_application(
    application_id: str,
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    try:
        application = await service.get_loan_application(application_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        logger.error(f"Database error reading application {application_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body("Internal Server Error"))
    return convert_objectid(application)


# Manager approval or rejection
@router.patch(
    "/loan-applications/{application_id}",
    dependencies=[Depends(require_capability(APPLICATIONS_REVIEW))],
)
async def update_application_status(
    application_id: str,
    status_update: Dict[str, Any] = Body(...),
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    new_status = status_update.get("status")
    try:
        outcome = await service.update_application_status(
            application_id,
            new_status,
            approved_at=status_update.get("approvedAt"),
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        logger.error(f"Failed to update application status: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Server error during status update"),
        )
    return {
        "message": f"Application {new_status} successfully",
        "modifiedCount": outcome.modified_count,
    }


@router.delete("/loan-applications/{application_id}")
async def cancel_loan_application(
    application_id: str,
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    try:
        await service.delete_loan_application(application_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return message_body("Application cancelled")


# Records the application fee payment returned by the payment flow
@router.patch("/loan-applications/payment/{application_id}")
async def record_application_payment(
    application_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    service: LoanApplicationService = Depends(get_loan_application_service),
):
    transaction_id = (payload or {}).get("transactionId")
    try:
        outcome = await service.record_payment(application_id, transaction_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return build_update_response(outcome)

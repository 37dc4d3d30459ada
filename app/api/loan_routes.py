from fastapi import APIRouter, HTTPException, Depends, Query, Body
from fastapi import status
from typing import Dict, Any, List, Optional
import logging

from app.core.auth_dependencies import LOANS_MANAGE, require_capability
from app.core.dependencies import get_loan_product_service
from app.core.exceptions import NotFoundError, StoreOperationFailed, ValidationError
from app.helpers.response_builder import build_insert_response, convert_objectid, error_body, message_body
from app.services.loan_product_service import LoanProductService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/loans", tags=["Loan Products"])


# Lists loan products, optionally filtered by a title/category search
@router.get("", response_model=List[Dict[str, Any]])
async def get_loan_products(
    search: Optional[str] = Query(default=None, description="Case-insensitive text matched against title or category"),
    service: LoanProductService = Depends(get_loan_product_service),
):
    try:
        loans = await service.get_loan_products(search)
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return convert_objectid(loans)


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_capability(LOANS_MANAGE))])
async def create_loan_product(
    payload: Dict[str, Any] = Body(...),
    service: LoanProductService = Depends(get_loan_product_service),
):
    try:
        inserted_id = await service.create_loan_product(payload)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except StoreOperationFailed as e:
        logger.error(f"Failed to create loan product: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return build_insert_response(inserted_id)


# Retrieves a single loan product for the update page
@router.get("/{loan_id}", response_model=Dict[str, Any])
async def get_loan_product(
    loan_id: str,
    service: LoanProductService = Depends(get_loan_product_service),
):
    try:
        loan = await service.get_loan_product(loan_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_body(e.message))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return convert_objectid(loan)


@router.put("/{loan_id}", dependencies=[Depends(require_capability(LOANS_MANAGE))])
async def update_loan_product(
    loan_id: str,
    updated_data: Dict[str, Any] = Body(...),
    service: LoanProductService = Depends(get_loan_product_service),
):
    try:
        await service.update_loan_product(loan_id, updated_data)
    except ValidationError as e:
        if e.message == "Invalid ID format":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_body(e.message))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        logger.error(f"Failed to update loan: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Invalid ID format or server error"),
        )
    return message_body("Loan updated successfully")


@router.delete("/{loan_id}", dependencies=[Depends(require_capability(LOANS_MANAGE))])
async def delete_loan_product(
    loan_id: str,
    service: LoanProductService = Depends(get_loan_product_service),
):
    try:
        await service.delete_loan_product(loan_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_body(e.message))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        logger.error(f"Failed to delete loan: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Invalid ID format or server error"),
        )
    return message_body("Loan product successfully deleted")

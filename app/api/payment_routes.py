from fastapi import APIRouter, Depends, HTTPException, Body, status
from pydantic import ValidationError as PydanticValidationError
from typing import Any, Dict
import logging

from app.core.dependencies import get_payment_gateway
from app.core.exceptions import PaymentProviderError
from app.helpers.response_builder import error_body
from app.schemas.payment_schema import PaymentIntentRequest, PaymentIntentResponse
from app.services.payment_service import StripePaymentGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


# Creates a card payment intent for the application fee and returns its client secret
@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    payload: Dict[str, Any] = Body(...),
    payments: StripePaymentGateway = Depends(get_payment_gateway),
):
    try:
        request_data = PaymentIntentRequest.model_validate(payload)
    except PydanticValidationError:
        logger.warning(f"Payment intent rejected, bad price: {payload.get('price')!r}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_body("A numeric price is required"))

    try:
        client_secret = await payments.create_payment_intent(request_data.price)
    except PaymentProviderError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return PaymentIntentResponse(clientSecret=client_secret)

"""FastAPI dependency providers.

The gateway and payment adapter are process-wide; services are cheap
wrappers built per request. Tests replace any of these through
``app.dependency_overrides``.
"""
from fastapi import Depends

from app.core.config import settings
from app.core.exceptions import StoreUnavailable
from app.database.connection import MongoGateway
from app.services.loan_product_service import LoanProductService
from app.services.loan_service import LoanApplicationService
from app.services.payment_service import StripePaymentGateway
from app.services.user_service import UserService

gateway = MongoGateway(settings.MONGODB_URI, settings.MONGODB_DB_NAME)
payment_gateway = StripePaymentGateway(settings.STRIPE_SECRET_KEY, currency=settings.PAYMENT_CURRENCY)


# Connects on first use and retries after a failed attempt
async def get_gateway() -> MongoGateway:
    await gateway.connect()
    if not gateway.is_connected:
        raise StoreUnavailable()
    return gateway


def get_payment_gateway() -> StripePaymentGateway:
    return payment_gateway


def get_loan_product_service(store: MongoGateway = Depends(get_gateway)) -> LoanProductService:
    return LoanProductService(store)


def get_loan_application_service(store: MongoGateway = Depends(get_gateway)) -> LoanApplicationService:
    return LoanApplicationService(store)


def get_user_service(store: MongoGateway = Depends(get_gateway)) -> UserService:
    return UserService(store, default_role=settings.DEFAULT_USER_ROLE)

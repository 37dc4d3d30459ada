import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import NotFoundError, ValidationError
from app.database.connection import LOANS, MongoGateway, contains_text, parse_object_id
from app.schemas.loan_schema import LoanProductCreate
from app.utils.loan_application_utils import utc_now_iso

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "category")


class LoanProductService:
    """Administrative catalog of loan products."""

    def __init__(self, gateway: MongoGateway):
        self.gateway = gateway

    # Lists products, optionally narrowed to a case-insensitive match on title or category
    async def get_loan_products(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        query = contains_text(SEARCH_FIELDS, search) if search else {}
        return await self.gateway.find_many(LOANS, query)

    async def get_loan_product(self, product_id: str) -> Dict[str, Any]:
        loan = await self.gateway.find_one(LOANS, {"_id": parse_object_id(product_id)})
        if not loan:
            raise NotFoundError("Loan not found")
        return loan

    async def create_loan_product(self, payload: Dict[str, Any]) -> ObjectId:
        payload = {k: v for k, v in payload.items() if k != "_id"}
        try:
            product = LoanProductCreate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError("Loan title and category are required") from e
        if not product.display_title or not product.category:
            raise ValidationError("Loan title and category are required")

        # Only keys the client sent; free-form nulls are kept
        document = {k: v for k, v in product.model_dump().items() if k in payload}
        document["created_at"] = utc_now_iso()
        inserted_id = await self.gateway.insert_one(LOANS, document)
        logger.info(f"Loan product {inserted_id} created: {product.display_title}")
        return inserted_id

    async def update_loan_product(self, product_id: str, fields: Dict[str, Any]) -> None:
        query = {"_id": parse_object_id(product_id)}
        updated_data = {k: v for k, v in fields.items() if k != "_id"}
        if not updated_data:
            raise ValidationError("No fields to update")

        outcome = await self.gateway.update_one(LOANS, query, {"$set": updated_data})
        if outcome.matched_count == 0:
            raise NotFoundError("Loan not found")
        logger.info(f"Loan product {product_id} updated ({', '.join(updated_data)})")

    async def delete_loan_product(self, product_id: str) -> None:
        deleted = await self.gateway.delete_one(LOANS, {"_id": parse_object_id(product_id)})
        if deleted != 1:
            raise NotFoundError("Loan product not found")
        logger.info(f"Loan product {product_id} deleted")

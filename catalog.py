"""Read-only product catalog."""
from typing import List

from pymongo.database import Database

from database import PRODUCTS, get_document, get_documents
from errors import NotFound


def list_products(db: Database) -> List[dict]:
    return get_documents(db, PRODUCTS, sort=[("product_id", 1)])


def get_product(db: Database, product_id: str) -> dict:
    product = get_document(db, PRODUCTS, {"product_id": product_id})
    if not product:
        raise NotFound("Product not found")
    return product

"""
Order ledger.

Orders are created once, change only through status updates (each one
appended to ``change_log``) and are never deleted. Creation reserves stock
with a single conditional decrement and releases it again if the order
cannot be written, so the product stock and the set of orders always agree.
"""
import logging
import secrets
import string
from datetime import datetime
from typing import List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import Claims
from catalog import get_product
from database import ORDERS, PRODUCTS, USERS, create_document, get_document, get_documents, to_utc, utcnow
from errors import Forbidden, InsufficientStock, InternalError, NotFound
from schemas import ChangeLogEntry, CreateOrderRequest, Location, Order, OrderLine

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 8
MAX_ID_ATTEMPTS = 5
MAX_STATUS_ATTEMPTS = 5


def new_suffix() -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(SUFFIX_LENGTH))


def make_references(now: datetime, suffix: str) -> Tuple[str, str]:
    """Return the (order_id, task_id) pair for a creation time and suffix."""
    date_str = now.strftime("%Y%m%d")
    return f"order_{date_str}_{suffix}", f"task_{date_str}_{suffix}"


# ===================== Stock =====================

def reserve_stock(db: Database, product_id: str, quantity: int) -> dict:
    """Take ``quantity`` units in one atomic step, only if that many are left.

    Returns the product document as it is after the decrement.
    """
    product = db[PRODUCTS].find_one_and_update(
        {"product_id": product_id, "stock": {"$gte": quantity}},
        {"$inc": {"stock": -quantity}, "$set": {"updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if product is None:
        logger.warning("Stock reservation of %s x %s rejected", quantity, product_id)
        raise InsufficientStock()
    return product


def release_stock(db: Database, product_id: str, quantity: int) -> None:
    db[PRODUCTS].update_one(
        {"product_id": product_id},
        {"$inc": {"stock": quantity}, "$set": {"updated_at": utcnow()}},
    )


# ===================== Creation =====================

def build_order(customer: dict, product: dict, payload: CreateOrderRequest, now: datetime, suffix: str) -> Order:
    order_id, task_id = make_references(now, suffix)
    return Order(
        order_id=order_id,
        task_id=task_id,
        customer_id=customer["user_id"],
        location=Location(
            address=customer["address"],
            latitude=customer.get("latitude"),
            longitude=customer.get("longitude"),
        ),
        ready_time=payload.ready_time,
        due_time=payload.due_time,
        order_date=to_utc(payload.order_date) if payload.order_date else now,
        request=OrderLine(
            product_id=product["product_id"],
            product_name=product["name"],
            quantity=payload.quantity,
            notes=payload.notes or "",
            demand=product["weight"]["value"] * payload.quantity,
        ),
        total_price=product["price"] * payload.quantity,
    )


def _insert_order(db: Database, customer: dict, product: dict, payload: CreateOrderRequest) -> dict:
    now = utcnow()
    for _ in range(MAX_ID_ATTEMPTS):
        order = build_order(customer, product, payload, now, new_suffix())
        try:
            return create_document(db, ORDERS, order)
        except DuplicateKeyError:
            logger.warning("Order id %s already taken, retrying", order.order_id)
    raise InternalError("Could not allocate an order id")


def create_order(db: Database, claims: Claims, payload: CreateOrderRequest) -> dict:
    customer = get_document(db, USERS, {"user_id": claims.user_id})
    if not customer:
        raise NotFound("User not found")
    if not customer.get("is_active"):
        raise Forbidden("Your account has not been approved yet. Orders can be placed after admin approval.")

    product = get_product(db, payload.product_id)
    if product["stock"] < payload.quantity:
        logger.warning("Order of %s x %s exceeds stock %s", payload.quantity, product["product_id"], product["stock"])
        raise InsufficientStock()

    # the check above is advisory; the reservation is what guards against oversell
    product = reserve_stock(db, payload.product_id, payload.quantity)
    try:
        order = _insert_order(db, customer, product, payload)
    except Exception:
        logger.exception("Order insert failed, releasing %s x %s", payload.quantity, payload.product_id)
        release_stock(db, payload.product_id, payload.quantity)
        raise

    logger.info("Order %s created for customer %s (%s x %s)", order["order_id"], customer["user_id"],
                payload.quantity, payload.product_id)
    return order


# ===================== Status =====================

def update_status(db: Database, order_id: str, new_status: str, claims: Claims) -> None:
    """Set the order status and append the change to its log.

    Any status may follow any other, including itself.
    """
    order = get_document(db, ORDERS, {"order_id": order_id})
    if not order:
        raise NotFound("Order not found")
    if not claims.is_admin and order["customer_id"] != claims.user_id:
        raise Forbidden("You cannot update this order")

    current = order.get("status")
    for _ in range(MAX_STATUS_ATTEMPTS):
        now = utcnow()
        entry = ChangeLogEntry(
            field="status",
            old_value=current,
            new_value=new_status,
            changed_at=now,
            changed_by=claims.user_id,
        )
        # only applies while the stored status still equals the logged old_value
        before = db[ORDERS].find_one_and_update(
            {"order_id": order_id, "status": current},
            {"$set": {"status": new_status, "updated_at": now}, "$push": {"change_log": entry.model_dump()}},
            return_document=ReturnDocument.BEFORE,
        )
        if before is not None:
            logger.info("Order %s status %s -> %s by %s", order_id, current, new_status, claims.user_id)
            return
        latest = db[ORDERS].find_one({"order_id": order_id}, {"status": 1})
        if latest is None:
            raise NotFound("Order not found")
        logger.warning("Order %s status changed concurrently, retrying", order_id)
        current = latest.get("status")
    raise InternalError("Order status is changing too often, try again")


# ===================== Listing =====================

def list_orders(db: Database, customer_id: Optional[str] = None) -> List[dict]:
    filt = {"customer_id": customer_id} if customer_id else {}
    return get_documents(db, ORDERS, filt, sort=[("created_at", -1), ("_id", -1)])

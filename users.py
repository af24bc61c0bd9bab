"""User accounts: registration, login and admin management."""
import logging
from typing import List

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import hash_password, verify_password
from database import USERS, create_document, get_document, get_documents, next_sequence, update_document, utcnow
from errors import Conflict, InternalError, NotFound, Unauthorized
from schemas import RegisterRequest, User

logger = logging.getLogger(__name__)

NO_PASSWORD = {"password_hash": 0}
INVALID_LOGIN = "Invalid email or password"
DUPLICATE_EMAIL = "A user with this email already exists"
MAX_ID_ATTEMPTS = 5


def public_user(user: dict, *fields: str) -> dict:
    """Subset of a user document safe to return alongside a token."""
    keys = ("user_id", "full_name", "email", "is_active", "role") + fields
    return {k: user.get(k) for k in keys}


def _next_user_id(db: Database) -> str:
    """Next counter value not already held by a stored user."""
    while True:
        user_id = str(next_sequence(db, USERS))
        if not db[USERS].find_one({"user_id": user_id}, {"_id": 1}):
            return user_id


def register(db: Database, payload: RegisterRequest) -> dict:
    if get_document(db, USERS, {"email": payload.email}):
        raise Conflict(DUPLICATE_EMAIL)
    now = utcnow()
    user = User(
        user_id=_next_user_id(db),
        full_name=payload.full_name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        phone_number=payload.phone_number,
        address=payload.address,
        latitude=payload.latitude,
        longitude=payload.longitude,
        last_login=now,
    )
    for _ in range(MAX_ID_ATTEMPTS):
        try:
            doc = create_document(db, USERS, user)
            break
        except DuplicateKeyError:
            if get_document(db, USERS, {"email": payload.email}):
                # lost a race with a concurrent registration for the same email
                raise Conflict(DUPLICATE_EMAIL)
            logger.warning("User id %s already taken, retrying", user.user_id)
            user.user_id = _next_user_id(db)
    else:
        raise InternalError("Could not allocate a user id")
    logger.info("Registered user %s (%s), awaiting approval", doc["user_id"], doc["email"])
    return doc


def authenticate(db: Database, email: str, password: str) -> dict:
    user = get_document(db, USERS, {"email": email})
    if not user or not verify_password(password, user.get("password_hash", "")):
        logger.warning("Rejected login for %s", email)
        raise Unauthorized(INVALID_LOGIN)
    now = utcnow()
    db[USERS].update_one({"user_id": user["user_id"]}, {"$set": {"last_login": now}})
    user["last_login"] = now
    logger.info("User %s logged in", user["user_id"])
    return user


def get_user(db: Database, user_id: str) -> dict:
    user = get_document(db, USERS, {"user_id": user_id}, NO_PASSWORD)
    if not user:
        raise NotFound("User not found")
    return user


def list_users(db: Database) -> List[dict]:
    return get_documents(db, USERS, projection=NO_PASSWORD, sort=[("created_at", 1)])


def set_approval(db: Database, user_id: str, is_active: bool) -> None:
    if not update_document(db, USERS, {"user_id": user_id}, {"is_active": is_active}):
        raise NotFound("User not found")
    logger.info("User %s is_active set to %s", user_id, is_active)


def set_role(db: Database, user_id: str, role: str) -> None:
    if not update_document(db, USERS, {"user_id": user_id}, {"role": role}):
        raise NotFound("User not found")
    logger.info("User %s role set to %s", user_id, role)

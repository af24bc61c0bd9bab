"""Development seed data: the water catalog and an admin account."""
import logging
from datetime import datetime, timezone

from pymongo.database import Database

from auth import hash_password
from config import Settings
from database import PRODUCTS, USERS, create_document, utcnow
from schemas import Dimensions, Measure, Product, User

logger = logging.getLogger(__name__)

IMAGE_URL = "https://raw.githubusercontent.com/Pilestin/OpevaGetir/refs/heads/master/assets/images/OpevaSuPNG.png"
CATALOG_SINCE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _cm(length: float, width: float, height: float) -> Dimensions:
    return Dimensions(
        length=Measure(value=length, unit="cm"),
        width=Measure(value=width, unit="cm"),
        height=Measure(value=height, unit="cm"),
    )


PRODUCTS_SEED = [
    Product(product_id="SU_0", name="OPEVA Natural Spring Water", description="19L Jug", price=100,
            stock=120, weight=Measure(value=19, unit="kg"), dimensions=_cm(20, 6, 6), category="Jug",
            image_url=IMAGE_URL, product_type="OPEVA"),
    Product(product_id="SU_1", name="OPEVA Bottled Water", description="0.5L PET Bottle", price=5,
            stock=500, weight=Measure(value=0.5, unit="kg"), dimensions=_cm(20, 6, 6), category="PET Bottle",
            image_url=IMAGE_URL, product_type="OPEVA"),
    Product(product_id="SU_2", name="OPEVA Bottled Water", description="1.5L PET Bottle", price=10,
            stock=300, weight=Measure(value=1.5, unit="kg"), dimensions=_cm(30, 8, 8), category="PET Bottle",
            image_url=IMAGE_URL, product_type="OPEVA"),
]


def seed(db: Database, settings: Settings) -> bool:
    """Insert the catalog and admin account. Returns False if data already exists."""
    if db[PRODUCTS].count_documents({}) > 0:
        return False

    for product in PRODUCTS_SEED:
        create_document(db, PRODUCTS, {**product.model_dump(), "created_at": CATALOG_SINCE})

    if not db[USERS].find_one({"email": settings.admin_email}):
        admin = User(
            user_id="0",
            full_name="Admin User",
            email=settings.admin_email,
            password_hash=hash_password(settings.admin_password),
            phone_number="+90 555 000 00 00",
            address="Admin Address",
            latitude=39.75250570103818,
            longitude=30.490999148931902,
            is_active=True,
            role="admin",
            last_login=utcnow(),
        )
        create_document(db, USERS, admin)

    logger.info("Seeded %d products and admin %s", len(PRODUCTS_SEED), settings.admin_email)
    return True

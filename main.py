"""
Water Delivery Ordering API

Customers register, wait for an admin to approve their account, then order
water from the catalog. Admins approve accounts and see every order.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

import catalog
import orders
import users
from auth import Claims, create_token, get_claims, require_admin
from config import Settings, get_settings
from database import connect, ensure_indexes, get_db
from errors import NotFound
from schemas import (
    ApproveUserRequest,
    CreateOrderRequest,
    LoginRequest,
    RegisterRequest,
    SetRoleRequest,
    UpdateOrderStatusRequest,
)
from seed import seed

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    client = connect(settings)
    app.state.db = None
    if client is not None:
        app.state.db = client[settings.database_name]
        ensure_indexes(app.state.db)
        logger.info("Connected to MongoDB database %s", settings.database_name)
    try:
        yield
    finally:
        if client is not None:
            client.close()


app = FastAPI(title="Water Delivery Ordering API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ===================== Public Endpoints =====================
@app.get("/")
def root():
    return {"message": "Water Delivery Ordering API running"}


@app.get("/test")
def test_database(request: Request, settings: Settings = Depends(get_settings)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    db = getattr(request.app.state, "db", None)
    try:
        if db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            response["collections"] = db.list_collection_names()
        else:
            response["database"] = "⚠️  Available but not initialized"
    except PyMongoError as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    response["database_url"] = "✅ Set" if settings.database_url else "❌ Not Set"
    response["database_name"] = "✅ Set" if settings.database_name else "❌ Not Set"
    return response


# ===================== Auth =====================
@app.post("/api/auth/register", status_code=201)
def register(payload: RegisterRequest, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    user = users.register(db, payload)
    return {
        "message": "Registration successful! Your account is awaiting admin approval.",
        "token": create_token(user, settings),
        "user": users.public_user(user),
    }


@app.post("/api/auth/login")
def login(payload: LoginRequest, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    user = users.authenticate(db, payload.email, payload.password)
    return {
        "message": "Login successful",
        "token": create_token(user, settings),
        "user": users.public_user(user, "phone_number", "address", "profile_picture"),
    }


@app.get("/api/auth/me")
def me(claims: Claims = Depends(get_claims), db: Database = Depends(get_db)):
    return users.get_user(db, claims.user_id)


# ===================== Products =====================
@app.get("/api/products")
def list_products(claims: Claims = Depends(get_claims), db: Database = Depends(get_db)):
    return catalog.list_products(db)


@app.get("/api/products/{product_id}")
def get_product(product_id: str, claims: Claims = Depends(get_claims), db: Database = Depends(get_db)):
    return catalog.get_product(db, product_id)


# ===================== Orders =====================
@app.post("/api/orders", status_code=201)
def create_order(payload: CreateOrderRequest, claims: Claims = Depends(get_claims), db: Database = Depends(get_db)):
    order = orders.create_order(db, claims, payload)
    return {"message": "Order created successfully", "order": order}


@app.get("/api/orders/my-orders")
def my_orders(claims: Claims = Depends(get_claims), db: Database = Depends(get_db)):
    return orders.list_orders(db, customer_id=claims.user_id)


@app.get("/api/orders")
def list_orders(claims: Claims = Depends(require_admin), db: Database = Depends(get_db)):
    return orders.list_orders(db)


@app.patch("/api/orders/{order_id}/status")
def update_order_status(order_id: str, payload: UpdateOrderStatusRequest,
                        claims: Claims = Depends(get_claims), db: Database = Depends(get_db)):
    orders.update_status(db, order_id, payload.status, claims)
    return {"message": "Order status updated"}


# ===================== Admin =====================
@app.get("/api/admin/users")
def list_users(claims: Claims = Depends(require_admin), db: Database = Depends(get_db)):
    return users.list_users(db)


@app.patch("/api/admin/users/{user_id}/approve")
def approve_user(user_id: str, payload: ApproveUserRequest,
                 claims: Claims = Depends(require_admin), db: Database = Depends(get_db)):
    users.set_approval(db, user_id, payload.is_active)
    return {"message": "User status updated"}


@app.patch("/api/admin/users/{user_id}/role")
def set_user_role(user_id: str, payload: SetRoleRequest,
                  claims: Claims = Depends(require_admin), db: Database = Depends(get_db)):
    users.set_role(db, user_id, payload.role)
    return {"message": "User role updated"}


# ===================== Seed (development only) =====================
@app.post("/api/seed")
def seed_data(db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    if not settings.enable_seed:
        raise NotFound("Not Found")
    if not seed(db, settings):
        return {"message": "Data already exists"}
    return {"message": "Seed data created"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)

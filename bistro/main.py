"""
FastAPI Application Entry Point

Bistro Boss API - menu, reviews, carts, users and payments over MongoDB.

Endpoints (all under /api/v1):
    - POST /jwt, GET /getUserRole/{email}: sign-in tokens and role lookup
    - GET /users, POST /create-user, PATCH /make-admin/{id}, DELETE /user/{id}
    - GET /get-all-foods, POST /add-item, DELETE /delete-from-foods/{id}
    - GET /get-reviews
    - GET /get-cart, POST /add-to-cart, DELETE /delete-from-cart/{id}
    - POST /create-payment-intent, POST /save-payment-details
Plus GET / (banner) and GET /health.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.concurrency import run_in_threadpool

from bistro.core.auth import is_admin, require_admin, require_authenticated
from bistro.core.config import get_settings, setup_logging
from bistro.core.exceptions import (
    BistroError,
    DuplicateCartItemError,
    ForbiddenError,
    PaymentGatewayError,
)
from bistro.core.security import issue_token
from bistro.database import create_client, get_db, init_db, ping
from bistro.repositories import (
    CartRepository,
    FoodRepository,
    PaymentRepository,
    ReviewRepository,
    UserRepository,
    delete_result,
    get_cart_repository,
    get_food_repository,
    get_payment_repository,
    get_review_repository,
    get_user_repository,
    insert_result,
    serialize_doc,
    update_result,
)
from bistro.schemas import (
    AdminStatusResponse,
    CartInsertResponse,
    CartItemCreate,
    DeleteResponse,
    ErrorResponse,
    FoodItemCreate,
    HealthResponse,
    InsertResponse,
    MessageResponse,
    PaymentCreate,
    PaymentIntentRequest,
    PaymentIntentResponse,
    RoleUpdate,
    TokenRequest,
    TokenResponse,
    UpdateResponse,
    UserCreate,
)
from bistro.services.payment import BasePaymentService, get_payment_service

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "Already have an account with this email"


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    client = create_client(settings)
    app.state.mongo_client = client
    app.state.db = client[settings.db_name]

    await run_in_threadpool(ping, client)
    await run_in_threadpool(init_db, app.state.db)

    payment_service = get_payment_service()
    logger.info(f"✅ Payment Service: {payment_service.provider_name}")
    logger.info(f"✅ {settings.app_name} is running on port {settings.port}")

    yield

    logger.info("Shutting down...")
    client.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="REST backend for the Bistro Boss restaurant ordering app.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix="/api/v1")

AUTH_ERRORS = {401: {"model": ErrorResponse}}
ADMIN_ERRORS = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", response_class=PlainTextResponse, tags=["Root"])
async def root() -> str:
    return "Bistro Boss Server is running ..."


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: Database = Depends(get_db),
    payment_service: BasePaymentService = Depends(get_payment_service),
) -> HealthResponse:
    """Verify MongoDB and the payment provider are reachable."""
    db_status = "healthy"
    try:
        await run_in_threadpool(db.command, "ping")
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    payment_status = "healthy" if await payment_service.health_check() else "unhealthy"

    overall = "operational" if db_status == payment_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        payment_service=payment_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@router.post("/jwt", response_model=TokenResponse, tags=["Auth"])
def create_token(payload: TokenRequest) -> TokenResponse:
    """Sign the posted claims into a one-hour identity token."""
    return TokenResponse(token=issue_token(payload.to_document()))


@router.get(
    "/getUserRole/{email}",
    response_model=AdminStatusResponse,
    responses={**AUTH_ERRORS, 403: {"model": ErrorResponse}},
    tags=["Auth"],
)
@router.get(
    "/role/{email}",
    response_model=AdminStatusResponse,
    responses={**AUTH_ERRORS, 403: {"model": ErrorResponse}},
    tags=["Auth"],
    include_in_schema=False,
)
def get_user_role(
    email: str,
    claims: dict[str, Any] = Depends(require_authenticated),
    users: UserRepository = Depends(get_user_repository),
) -> AdminStatusResponse:
    """Tell the signed-in user whether they are an admin."""
    if email != claims.get("email"):
        raise ForbiddenError()
    return AdminStatusResponse(admin=is_admin(users.find_by_email(email)))


# =============================================================================
# USER ENDPOINTS
# =============================================================================

@router.patch(
    "/make-admin/{user_id}",
    response_model=UpdateResponse,
    responses=ADMIN_ERRORS,
    tags=["Users"],
    dependencies=[Depends(require_admin)],
)
def make_admin(
    user_id: str,
    payload: RoleUpdate,
    users: UserRepository = Depends(get_user_repository),
) -> dict[str, Any]:
    logger.info(f"Setting role of user {user_id} to {payload.role!r}")
    return update_result(users.set_role(user_id, payload.role))


@router.delete(
    "/user/{user_id}",
    response_model=DeleteResponse,
    responses=ADMIN_ERRORS,
    tags=["Users"],
    dependencies=[Depends(require_admin)],
)
def delete_user(
    user_id: str,
    users: UserRepository = Depends(get_user_repository),
) -> dict[str, Any]:
    return delete_result(users.delete_by_id(user_id))


@router.get(
    "/users",
    responses=ADMIN_ERRORS,
    tags=["Users"],
    dependencies=[Depends(require_admin)],
)
def list_users(
    users: UserRepository = Depends(get_user_repository),
) -> list[dict[str, Any]]:
    return [serialize_doc(doc) for doc in users.find_many()]


@router.post(
    "/create-user",
    response_model=Union[InsertResponse, MessageResponse],
    tags=["Users"],
)
def create_user(
    payload: UserCreate,
    users: UserRepository = Depends(get_user_repository),
) -> dict[str, Any]:
    """
    Store a user on first sign-in.
    A second sign-in with the same email is a no-op; the unique email index
    makes that hold under concurrent requests too.
    """
    try:
        result = users.insert_one(payload.to_document())
    except DuplicateKeyError:
        return {"message": DUPLICATE_USER_MESSAGE}

    logger.info(f"User created: {payload.email}")
    return insert_result(result)


# =============================================================================
# PAYMENT ENDPOINTS
# =============================================================================

@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    responses={502: {"model": ErrorResponse}},
    tags=["Payments"],
)
async def create_payment_intent(
    payload: PaymentIntentRequest,
    payment_service: BasePaymentService = Depends(get_payment_service),
) -> PaymentIntentResponse:
    result = await payment_service.create_payment_intent(
        amount=payload.price,
        currency=settings.stripe_currency,
    )

    if not result.success:
        raise PaymentGatewayError(result.error_message)

    return PaymentIntentResponse(clientSecret=result.client_secret)


@router.post(
    "/save-payment-details",
    response_model=InsertResponse,
    tags=["Payments"],
)
def save_payment_details(
    payload: PaymentCreate,
    payments: PaymentRepository = Depends(get_payment_repository),
    cart: CartRepository = Depends(get_cart_repository),
) -> dict[str, Any]:
    """
    Record a completed payment and empty the paid-for entries from the cart.

    The two writes are not atomic. The cart cleanup is idempotent, so a
    failure after the payment is stored is logged with the payment id and
    can be repaired by deleting the listed cart ids again.
    """
    result = payments.insert_one(payload.to_document())
    logger.info(f"Payment saved: {result.inserted_id} ({len(payload.item_id)} items)")

    try:
        cleared = cart.delete_items(payload.item_id, payload.email)
    except PyMongoError:
        logger.exception(
            f"Cart cleanup failed for payment {result.inserted_id}; "
            f"cart ids still present: {payload.item_id}"
        )
        raise

    logger.debug(f"Removed {cleared.deleted_count} cart entries")
    return insert_result(result)


# =============================================================================
# CART ENDPOINTS
# =============================================================================

@router.delete(
    "/delete-from-cart/{item_id}",
    response_model=DeleteResponse,
    tags=["Cart"],
)
def delete_from_cart(
    item_id: str,
    email: Optional[str] = Query(None),
    cart: CartRepository = Depends(get_cart_repository),
) -> dict[str, Any]:
    """
    Remove one cart entry by its own id. With ``email``, a menu item id also
    works and only that user's entry is removed.
    """
    return delete_result(cart.delete_entry(item_id, email))


@router.get("/get-cart", tags=["Cart"])
def get_cart(
    email: Optional[str] = Query(None),
    cart: CartRepository = Depends(get_cart_repository),
) -> list[dict[str, Any]]:
    return [serialize_doc(doc) for doc in cart.find_entries(email)]


@router.post(
    "/add-to-cart",
    status_code=201,
    response_model=CartInsertResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Cart"],
)
def add_to_cart(
    payload: CartItemCreate,
    cart: CartRepository = Depends(get_cart_repository),
) -> CartInsertResponse:
    """
    Put a menu item in a user's cart.

    Each user holds at most one entry per menu item. The unique
    (itemId, email) index enforces that for concurrent requests; the lookup
    catches older entries stored under the item id itself.
    """
    if cart.find_item(payload.item_id, payload.email) is not None:
        raise DuplicateCartItemError()

    try:
        result = cart.add_item(payload.item_id, payload.to_document())
    except DuplicateKeyError:
        raise DuplicateCartItemError()

    return CartInsertResponse(insertedId=str(result.inserted_id))


# =============================================================================
# MENU & REVIEW ENDPOINTS
# =============================================================================

@router.post(
    "/add-item",
    response_model=InsertResponse,
    responses=ADMIN_ERRORS,
    tags=["Menu"],
    dependencies=[Depends(require_admin)],
)
def add_item(
    payload: FoodItemCreate,
    foods: FoodRepository = Depends(get_food_repository),
) -> dict[str, Any]:
    result = foods.insert_one(payload.to_document())
    logger.info(f"Menu item added: {payload.name}")
    return insert_result(result)


@router.delete(
    "/delete-from-foods/{item_id}",
    response_model=DeleteResponse,
    tags=["Menu"],
)
def delete_from_foods(
    item_id: str,
    foods: FoodRepository = Depends(get_food_repository),
) -> dict[str, Any]:
    return delete_result(foods.delete_by_id(item_id))


@router.get("/get-all-foods", tags=["Menu"])
def get_all_foods(
    foods: FoodRepository = Depends(get_food_repository),
) -> list[dict[str, Any]]:
    return [serialize_doc(doc) for doc in foods.find_many()]


@router.get("/get-reviews", tags=["Reviews"])
def get_reviews(
    reviews: ReviewRepository = Depends(get_review_repository),
) -> list[dict[str, Any]]:
    return [serialize_doc(doc) for doc in reviews.find_many()]


app.include_router(router)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(BistroError)
async def bistro_error_handler(request: Request, exc: BistroError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.port)


if __name__ == "__main__":
    run()

"""
Pydantic Schemas for Request/Response Validation

Menu items, users, cart entries and payments are stored as the client sends
them, so the request models name only the fields the API relies on and keep
everything else (``extra="allow"``).
"""

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from bistro.models import PAYMENT_ITEMS_FIELD


class OpenDocument(BaseModel):
    """Request body whose unknown fields are stored verbatim."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        # Optional fields the client never sent stay out; explicit nulls are kept
        return self.model_dump(by_alias=True, exclude_unset=True)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class TokenRequest(OpenDocument):
    """Claims to sign into an identity token."""
    email: str = Field(..., min_length=3, examples=["guest@bistro.com"])


class UserCreate(OpenDocument):
    """First sign-in of a user."""
    email: str = Field(..., min_length=3, examples=["guest@bistro.com"])
    name: Optional[str] = Field(None, examples=["Guest"])


class RoleUpdate(BaseModel):
    role: Optional[str] = Field(None, examples=["admin"])


class FoodItemCreate(OpenDocument):
    """Menu item added by an admin."""
    name: str = Field(..., min_length=1, examples=["Caesar Salad"])
    price: float = Field(..., ge=0, examples=[12.5])
    category: Optional[str] = Field(None, examples=["salad"])


class CartItemCreate(OpenDocument):
    """Menu item placed in a user's cart; ``_id`` is the menu item id."""
    item_id: str = Field(..., alias="_id", min_length=1)
    email: str = Field(..., min_length=3)


class PaymentCreate(OpenDocument):
    """Completed checkout; ``itemId`` lists the cart entries it paid for."""
    item_id: List[str] = Field(default_factory=list, alias=PAYMENT_ITEMS_FIELD)
    email: Optional[str] = None
    price: Optional[float] = None
    transaction_id: Optional[str] = Field(None, alias="transactionId")


class PaymentIntentRequest(BaseModel):
    price: float = Field(..., gt=0, examples=[20])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class TokenResponse(BaseModel):
    token: str


class AdminStatusResponse(BaseModel):
    admin: bool


class PaymentIntentResponse(BaseModel):
    clientSecret: str


class CartInsertResponse(BaseModel):
    insertedId: Union[str, int, None]


class InsertResponse(BaseModel):
    acknowledged: bool
    insertedId: Union[str, int, None]


class UpdateResponse(BaseModel):
    acknowledged: bool
    matchedCount: int
    modifiedCount: int
    upsertedCount: int
    upsertedId: Union[str, int, None] = None


class DeleteResponse(BaseModel):
    acknowledged: bool
    deletedCount: int


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    payment_service: str
    timestamp: datetime

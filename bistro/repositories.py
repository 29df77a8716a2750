"""Repositories wrapping the five Bistro collections."""

from typing import Any, Dict, Iterable, List, Optional, Union

from bson import ObjectId
from fastapi import Depends
from fastapi.encoders import jsonable_encoder
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from bistro.database import get_db
from bistro.models import (
    CART_ITEM_FIELD,
    CollectionName,
    EMAIL_FIELD,
    ID_FIELD,
    ROLE_FIELD,
)

RawId = Union[str, ObjectId]


# =============================================================================
# IDENTIFIERS
# =============================================================================

def normalize_id(raw: RawId) -> RawId:
    """
    Canonical form of a client-supplied id: an ObjectId when the value is a
    24-character hex string, otherwise the string unchanged.
    """
    if isinstance(raw, ObjectId):
        return raw
    raw = str(raw)
    if ObjectId.is_valid(raw):
        return ObjectId(raw)
    return raw


def _id_candidates(raw: RawId) -> List[RawId]:
    # Older documents were stored with string ids, so match both encodings.
    canonical = normalize_id(raw)
    if isinstance(canonical, ObjectId):
        return [canonical, str(canonical)]
    return [canonical]


def id_filter(raw: RawId, field: str = ID_FIELD) -> Dict[str, Any]:
    """Filter matching one document by id under either encoding."""
    return {field: {"$in": _id_candidates(raw)}}


def ids_filter(raws: Iterable[RawId], field: str = ID_FIELD) -> Dict[str, Any]:
    """Filter matching every document whose id is in ``raws``, either encoding."""
    candidates: List[RawId] = []
    for raw in raws:
        candidates.extend(_id_candidates(raw))
    return {field: {"$in": candidates}}


# =============================================================================
# SERIALIZATION
# =============================================================================

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Make a stored document JSON-safe (ObjectId -> str, datetimes -> ISO)."""
    if doc is None:
        return None
    return jsonable_encoder(doc, custom_encoder={ObjectId: str})


def _plain_id(value: Any) -> Any:
    return str(value) if isinstance(value, ObjectId) else value


# Write results in the shape the MongoDB drivers serialize them to JSON

def insert_result(result: InsertOneResult) -> Dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "insertedId": _plain_id(result.inserted_id),
    }


def update_result(result: UpdateResult) -> Dict[str, Any]:
    upserted = result.upserted_id
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
        "upsertedCount": 1 if upserted is not None else 0,
        "upsertedId": _plain_id(upserted),
    }


def delete_result(result: DeleteResult) -> Dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "deletedCount": result.deleted_count,
    }


# =============================================================================
# REPOSITORIES
# =============================================================================

class BaseRepository:
    """The narrow operation set every collection exposes."""

    collection_name: CollectionName

    def __init__(self, db: Database):
        self.db = db
        self.collection: Collection = db[self.collection_name.value]

    def find_one(self, query: Dict[str, Any]) -> Optional[dict]:
        return self.collection.find_one(query)

    def find_many(self, query: Optional[Dict[str, Any]] = None) -> List[dict]:
        return list(self.collection.find(query or {}))

    def insert_one(self, document: Dict[str, Any]) -> InsertOneResult:
        # insert_one mutates its argument by adding _id
        return self.collection.insert_one(dict(document))

    def update_one(self, query: Dict[str, Any], patch: Dict[str, Any]) -> UpdateResult:
        return self.collection.update_one(query, {"$set": patch})

    def delete_one(self, query: Dict[str, Any]) -> DeleteResult:
        return self.collection.delete_one(query)

    def delete_many(self, query: Dict[str, Any]) -> DeleteResult:
        return self.collection.delete_many(query)

    def delete_by_id(self, raw_id: RawId) -> DeleteResult:
        return self.delete_one(id_filter(raw_id))


class FoodRepository(BaseRepository):
    collection_name = CollectionName.FOODS


class ReviewRepository(BaseRepository):
    collection_name = CollectionName.REVIEWS


class UserRepository(BaseRepository):
    collection_name = CollectionName.USERS

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.find_one({EMAIL_FIELD: email})

    def set_role(self, raw_id: RawId, role: Optional[str]) -> UpdateResult:
        return self.update_one(id_filter(raw_id), {ROLE_FIELD: role})


class CartRepository(BaseRepository):
    collection_name = CollectionName.CART

    @staticmethod
    def owned_filter(raw_ids: Iterable[RawId], email: str) -> Dict[str, Any]:
        """
        Entries in ``email``'s cart addressed by entry id or by menu item id.

        Older entries carry no ``itemId``; their ``_id`` is the menu item id,
        so the ``_id`` clause finds them either way.
        """
        raw_ids = list(raw_ids)
        return {
            EMAIL_FIELD: email,
            "$or": [ids_filter(raw_ids), ids_filter(raw_ids, CART_ITEM_FIELD)],
        }

    def find_entries(self, email: Optional[str] = None) -> List[dict]:
        return self.find_many({EMAIL_FIELD: email} if email else {})

    def find_item(self, item_id: RawId, email: str) -> Optional[dict]:
        return self.find_one(self.owned_filter([item_id], email))

    def add_item(self, item_id: RawId, document: Dict[str, Any]) -> InsertOneResult:
        """
        Store a new cart entry for the menu item ``item_id``.
        The (itemId, email) index raises DuplicateKeyError on a second copy.
        """
        entry = {k: v for k, v in document.items() if k != ID_FIELD}
        entry[CART_ITEM_FIELD] = normalize_id(item_id)
        return self.insert_one(entry)

    def delete_entry(self, raw_id: RawId, email: Optional[str] = None) -> DeleteResult:
        if email:
            return self.delete_one(self.owned_filter([raw_id], email))
        return self.delete_by_id(raw_id)

    def delete_items(
        self, item_ids: Iterable[RawId], email: Optional[str] = None
    ) -> DeleteResult:
        """
        Remove the listed entries; safe to repeat.
        With ``email`` the ids may also be menu item ids, matched in that
        user's cart only.
        """
        if email:
            return self.delete_many(self.owned_filter(item_ids, email))
        return self.delete_many(ids_filter(item_ids))


class PaymentRepository(BaseRepository):
    collection_name = CollectionName.PAYMENTS


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_food_repository(db: Database = Depends(get_db)) -> FoodRepository:
    return FoodRepository(db)


def get_review_repository(db: Database = Depends(get_db)) -> ReviewRepository:
    return ReviewRepository(db)


def get_user_repository(db: Database = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_cart_repository(db: Database = Depends(get_db)) -> CartRepository:
    return CartRepository(db)


def get_payment_repository(db: Database = Depends(get_db)) -> PaymentRepository:
    return PaymentRepository(db)

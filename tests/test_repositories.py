import unittest
from datetime import datetime

import mongomock
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from bistro.database import init_db
from bistro.repositories import (
    CartRepository,
    UserRepository,
    id_filter,
    ids_filter,
    normalize_id,
    serialize_doc,
)


class TestIdentifiers(unittest.TestCase):
    def test_hex_string_becomes_object_id(self):
        raw = "64b7f2a9c1e4a2b3c4d5e6f7"
        self.assertEqual(normalize_id(raw), ObjectId(raw))

    def test_other_strings_are_kept(self):
        self.assertEqual(normalize_id("salad-01"), "salad-01")

    def test_object_id_passes_through(self):
        oid = ObjectId()
        self.assertIs(normalize_id(oid), oid)

    def test_id_filter_matches_both_encodings(self):
        raw = "64b7f2a9c1e4a2b3c4d5e6f7"
        self.assertEqual(id_filter(raw), {"_id": {"$in": [ObjectId(raw), raw]}})

    def test_id_filter_on_another_field(self):
        self.assertEqual(id_filter("salad-01", "itemId"), {"itemId": {"$in": ["salad-01"]}})

    def test_id_filter_for_plain_string(self):
        self.assertEqual(id_filter("salad-01"), {"_id": {"$in": ["salad-01"]}})

    def test_ids_filter_flattens(self):
        raw = "64b7f2a9c1e4a2b3c4d5e6f7"
        self.assertEqual(
            ids_filter([raw, "salad-01"]),
            {"_id": {"$in": [ObjectId(raw), raw, "salad-01"]}},
        )


class TestSerializeDoc(unittest.TestCase):
    def test_nested_values_become_json_safe(self):
        oid = ObjectId()
        doc = {
            "_id": oid,
            "items": [oid],
            "paid_at": datetime(2024, 5, 1, 12, 30),
        }
        self.assertEqual(
            serialize_doc(doc),
            {"_id": str(oid), "items": [str(oid)], "paid_at": "2024-05-01T12:30:00"},
        )

    def test_none(self):
        self.assertIsNone(serialize_doc(None))


class TestRepositories(unittest.TestCase):
    def setUp(self):
        self.db = mongomock.MongoClient()["BistroDB"]
        init_db(self.db)

    def test_user_email_is_unique(self):
        users = UserRepository(self.db)
        users.insert_one({"email": "ann@bistro.com"})
        with self.assertRaises(DuplicateKeyError):
            users.insert_one({"email": "ann@bistro.com"})

    def test_insert_does_not_mutate_argument(self):
        users = UserRepository(self.db)
        document = {"email": "ann@bistro.com"}
        users.insert_one(document)
        self.assertNotIn("_id", document)

    def test_set_role(self):
        users = UserRepository(self.db)
        user_id = users.insert_one({"email": "ann@bistro.com"}).inserted_id
        result = users.set_role(str(user_id), "admin")
        self.assertEqual(result.modified_count, 1)
        self.assertEqual(users.find_by_email("ann@bistro.com")["role"], "admin")

    def test_cart_delete_items_is_repeatable(self):
        cart = CartRepository(self.db)
        entry_id = ObjectId()
        cart.insert_one({"_id": entry_id, "email": "ann@bistro.com"})

        first = cart.delete_items([str(entry_id)])
        second = cart.delete_items([str(entry_id)])

        self.assertEqual(first.deleted_count, 1)
        self.assertEqual(second.deleted_count, 0)

    def test_cart_item_is_unique_per_email(self):
        cart = CartRepository(self.db)
        item_id = str(ObjectId())
        cart.add_item(item_id, {"email": "ann@bistro.com"})
        cart.add_item(item_id, {"email": "bob@bistro.com"})
        with self.assertRaises(DuplicateKeyError):
            cart.add_item(item_id, {"email": "ann@bistro.com"})

    def test_older_entries_without_item_field_are_not_indexed(self):
        cart = CartRepository(self.db)
        cart.insert_one({"_id": "a", "email": "ann@bistro.com"})
        cart.insert_one({"_id": "b", "email": "ann@bistro.com"})
        self.assertEqual(len(cart.find_entries("ann@bistro.com")), 2)

    def test_add_item_stores_normalized_item_id(self):
        cart = CartRepository(self.db)
        item_id = "64b7f2a9c1e4a2b3c4d5e6f7"
        entry_id = cart.add_item(item_id, {"_id": item_id, "email": "ann@bistro.com"}).inserted_id
        stored = cart.find_one({"_id": entry_id})
        self.assertEqual(stored["itemId"], ObjectId(item_id))
        self.assertNotEqual(entry_id, ObjectId(item_id))

    def test_find_item_matches_either_layout(self):
        cart = CartRepository(self.db)
        legacy = str(ObjectId())
        cart.insert_one({"_id": legacy, "email": "ann@bistro.com"})
        current = str(ObjectId())
        cart.add_item(current, {"email": "ann@bistro.com"})

        self.assertIsNotNone(cart.find_item(legacy, "ann@bistro.com"))
        self.assertIsNotNone(cart.find_item(current, "ann@bistro.com"))
        self.assertIsNone(cart.find_item(current, "bob@bistro.com"))

    def test_find_entries_without_email_lists_all(self):
        cart = CartRepository(self.db)
        cart.insert_one({"_id": "a", "email": "ann@bistro.com"})
        cart.insert_one({"_id": "b", "email": "bob@bistro.com"})
        self.assertEqual(len(cart.find_entries()), 2)
        self.assertEqual(len(cart.find_entries("bob@bistro.com")), 1)


if __name__ == "__main__":
    unittest.main()

import unittest

from bson import ObjectId

from tests.base import ApiTestCase


class TestCart(ApiTestCase):
    def test_add_to_cart_returns_201(self):
        item_id = str(ObjectId())
        response = self.client.post(
            "/api/v1/add-to-cart",
            json={"_id": item_id, "email": "ann@bistro.com", "name": "Soup", "price": 4.5},
        )

        self.assertEqual(response.status_code, 201)
        stored = self.db.cart.find_one({"itemId": ObjectId(item_id)})
        self.assertEqual(response.json(), {"insertedId": str(stored["_id"])})
        self.assertNotEqual(stored["_id"], ObjectId(item_id))
        self.assertEqual(stored["email"], "ann@bistro.com")
        self.assertEqual(stored["name"], "Soup")

    def test_two_users_can_hold_the_same_item(self):
        item_id = str(ObjectId())
        ann = self.client.post(
            "/api/v1/add-to-cart", json={"_id": item_id, "email": "ann@bistro.com"}
        )
        bob = self.client.post(
            "/api/v1/add-to-cart", json={"_id": item_id, "email": "bob@bistro.com"}
        )

        self.assertEqual(ann.status_code, 201)
        self.assertEqual(bob.status_code, 201)
        bobs_cart = self.client.get("/api/v1/get-cart", params={"email": "bob@bistro.com"})
        self.assertEqual([entry["itemId"] for entry in bobs_cart.json()], [item_id])

    def test_older_entry_keyed_by_item_id_counts_as_duplicate(self):
        item_id = str(ObjectId())
        self.db.cart.insert_one({"_id": item_id, "email": "ann@bistro.com"})

        response = self.client.post(
            "/api/v1/add-to-cart", json={"_id": item_id, "email": "ann@bistro.com"}
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.db.cart.count_documents({"email": "ann@bistro.com"}), 1)

    def test_older_entry_with_object_id_counts_as_duplicate(self):
        item_id = ObjectId()
        self.db.cart.insert_one({"_id": item_id, "email": "ann@bistro.com"})

        response = self.client.post(
            "/api/v1/add-to-cart", json={"_id": str(item_id), "email": "ann@bistro.com"}
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.db.cart.count_documents({}), 1)

    def test_explicit_null_fields_are_stored(self):
        self.client.post(
            "/api/v1/add-to-cart",
            json={"_id": "salad-01", "email": "ann@bistro.com", "image": None},
        )
        stored = self.db.cart.find_one({"itemId": "salad-01"})
        self.assertIn("image", stored)
        self.assertIsNone(stored["image"])

    def test_same_pair_twice_keeps_one_entry(self):
        item = {"_id": str(ObjectId()), "email": "ann@bistro.com"}
        first = self.client.post("/api/v1/add-to-cart", json=item)
        second = self.client.post("/api/v1/add-to-cart", json=item)

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 400)
        self.assertEqual(second.json(), {"message": "Item already added to the cart"})
        self.assertEqual(self.db.cart.count_documents({}), 1)

    def test_non_object_id_item_is_stored_as_string(self):
        response = self.client.post(
            "/api/v1/add-to-cart", json={"_id": "salad-01", "email": "ann@bistro.com"}
        )
        self.assertEqual(response.status_code, 201)
        self.assertIsNotNone(self.db.cart.find_one({"itemId": "salad-01"}))

    def test_get_cart_filters_by_email(self):
        self.db.cart.insert_many([
            {"_id": ObjectId(), "email": "ann@bistro.com"},
            {"_id": ObjectId(), "email": "ann@bistro.com"},
            {"_id": ObjectId(), "email": "bob@bistro.com"},
        ])

        mine = self.client.get("/api/v1/get-cart", params={"email": "ann@bistro.com"})
        everything = self.client.get("/api/v1/get-cart")

        self.assertEqual(len(mine.json()), 2)
        self.assertTrue(all(entry["email"] == "ann@bistro.com" for entry in mine.json()))
        self.assertEqual(len(everything.json()), 3)
        self.assertIsInstance(everything.json()[0]["_id"], str)

    def test_delete_from_cart_by_object_id(self):
        entry_id = ObjectId()
        self.db.cart.insert_one({"_id": entry_id, "email": "ann@bistro.com"})

        response = self.client.delete(f"/api/v1/delete-from-cart/{entry_id}")

        self.assertEqual(response.json(), {"acknowledged": True, "deletedCount": 1})
        self.assertEqual(self.db.cart.count_documents({}), 0)

    def test_delete_from_cart_by_legacy_string_id(self):
        entry_id = str(ObjectId())
        self.db.cart.insert_one({"_id": entry_id, "email": "ann@bistro.com"})

        response = self.client.delete(f"/api/v1/delete-from-cart/{entry_id}")

        self.assertEqual(response.json()["deletedCount"], 1)

    def test_delete_by_item_id_touches_only_that_users_entry(self):
        item_id = str(ObjectId())
        for email in ("ann@bistro.com", "bob@bistro.com"):
            self.client.post("/api/v1/add-to-cart", json={"_id": item_id, "email": email})

        response = self.client.delete(
            f"/api/v1/delete-from-cart/{item_id}", params={"email": "ann@bistro.com"}
        )

        self.assertEqual(response.json()["deletedCount"], 1)
        remaining = [entry["email"] for entry in self.db.cart.find()]
        self.assertEqual(remaining, ["bob@bistro.com"])

    def test_delete_by_entry_id(self):
        added = self.client.post(
            "/api/v1/add-to-cart", json={"_id": str(ObjectId()), "email": "ann@bistro.com"}
        )

        response = self.client.delete(f"/api/v1/delete-from-cart/{added.json()['insertedId']}")

        self.assertEqual(response.json()["deletedCount"], 1)
        self.assertEqual(self.db.cart.count_documents({}), 0)

    def test_delete_unknown_id_is_not_an_error(self):
        response = self.client.delete("/api/v1/delete-from-cart/not-an-object-id")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["deletedCount"], 0)


if __name__ == "__main__":
    unittest.main()

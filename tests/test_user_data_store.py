import asyncio
import os
import sys
import unittest

from postgrest.exceptions import APIError

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from backend.errors import ProductNotFoundError  # noqa: E402
from fakes import FakeSupabase, make_backend, product_row, table_error  # noqa: E402
from stores.auth import AuthStore  # noqa: E402
from stores.user_data import UserDataStore  # noqa: E402


class UserDataStoreTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.fake = FakeSupabase()
        self.fake.seed(
            "products",
            product_row("p1", "Modern Sofa", 10000),
            product_row("p2", "Smart TV", 5000),
        )
        self.uid = self.fake.auth.add_account("alice@example.com", "secret1")

        backend = make_backend(self.fake)
        self.auth = AuthStore(backend)
        self.data = UserDataStore(backend, self.auth)
        await self.auth.start()

        self.kinds = []
        self.data.subscribe(self.kinds.append)

    async def asyncTearDown(self):
        await self.auth.stop()
        self.data.close()

    async def sign_in(self):
        await self.auth.sign_in("alice@example.com", "secret1")
        await self.auth.wait_idle()

    def cart_rows(self):
        return [r for r in self.fake.tables["cart_items"] if r["user_id"] == self.uid]

    # ---------- signed out ----------

    async def test_mutations_without_user_do_nothing(self):
        self.assertIsNone(await self.data.add_to_cart("p1"))
        self.assertIsNone(await self.data.add_to_favorites("p1"))
        self.assertIsNone(await self.data.add_to_search_history("sofa"))
        self.assertIsNone(await self.data.checkout())

        self.assertEqual(self.fake.calls, [])
        self.assertEqual(self.data.cart_items, [])
        self.assertEqual(self.kinds, [])

    # ---------- loading ----------

    async def test_sign_in_loads_existing_data(self):
        self.fake.seed(
            "cart_items", {"user_id": self.uid, "product_id": "p2", "quantity": 3}
        )
        self.fake.seed("favorites", {"user_id": self.uid, "product_id": "p1"})
        self.fake.seed("search_history", {"user_id": self.uid, "query": "tv"})

        await self.sign_in()

        self.assertEqual(self.data.cart_count, 3)
        self.assertEqual(self.data.cart_total, 15000)
        self.assertTrue(self.data.is_favorite("p1"))
        self.assertEqual([e.query for e in self.data.search_history], ["tv"])
        self.assertEqual(self.kinds, ["all"])

    async def test_failed_load_leaves_that_collection_empty(self):
        self.fake.seed("favorites", {"user_id": self.uid, "product_id": "p1"})
        self.fake.fail("cart_items", table_error("permission denied for table", code="42501"))

        await self.sign_in()

        self.assertEqual(self.data.cart_items, [])
        self.assertEqual(self.data.favorites_count, 1)

    async def test_sign_out_clears_local_data(self):
        await self.sign_in()
        await self.data.add_to_cart("p1")

        await self.auth.sign_out()
        await self.auth.wait_idle()

        self.assertEqual(self.data.cart_items, [])
        self.assertEqual(self.data.favorites, [])
        self.assertEqual(self.kinds[-1], "all")
        # the backend keeps the cart for the next session
        self.assertEqual(len(self.cart_rows()), 1)

    # ---------- cart ----------

    async def test_adding_twice_sums_quantity(self):
        await self.sign_in()

        await self.data.add_to_cart("p1")
        self.assertEqual(self.data.cart_total, 10000)
        await self.data.add_to_cart("p1")

        self.assertEqual(self.data.cart_total, 20000)
        self.assertEqual(self.data.cart_quantity("p1"), 2)
        rows = self.cart_rows()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["quantity"], 2)

    async def test_concurrent_adds_produce_one_line(self):
        await self.sign_in()

        await asyncio.gather(self.data.add_to_cart("p1"), self.data.add_to_cart("p1"))

        self.assertEqual(len(self.data.cart_items), 1)
        self.assertEqual(self.data.cart_quantity("p1"), 2)
        self.assertEqual([r["quantity"] for r in self.cart_rows()], [2])

    async def test_concurrent_increments_are_not_lost(self):
        await self.sign_in()
        await self.data.add_to_cart("p1")

        await asyncio.gather(
            self.data.change_cart_quantity("p1", 1),
            self.data.change_cart_quantity("p1", 1),
        )

        self.assertEqual(self.data.cart_quantity("p1"), 3)
        self.assertEqual([r["quantity"] for r in self.cart_rows()], [3])

    async def test_decrease_stops_at_one(self):
        await self.sign_in()
        await self.data.add_to_cart("p1", quantity=2)

        self.assertEqual(await self.data.change_cart_quantity("p1", -1), 1)
        self.assertIsNone(await self.data.change_cart_quantity("p1", -1))
        self.assertIsNone(await self.data.change_cart_quantity("p2", 1))

        self.assertEqual(self.data.cart_quantity("p1"), 1)
        self.assertEqual([r["quantity"] for r in self.cart_rows()], [1])

    async def test_update_quantity_then_reload(self):
        await self.sign_in()
        await self.data.add_to_cart("p2")

        await self.data.update_cart_quantity("p2", 4)
        await self.data.load()

        self.assertEqual(self.data.cart_quantity("p2"), 4)
        self.assertEqual(self.data.cart_total, 20000)

    async def test_remove_from_cart(self):
        await self.sign_in()
        await self.data.add_to_cart("p1")
        await self.data.add_to_cart("p2")

        await self.data.remove_from_cart("p1")

        self.assertEqual([i.product.id for i in self.data.cart_items], ["p2"])
        self.assertEqual([r["product_id"] for r in self.cart_rows()], ["p2"])

    async def test_backend_failure_keeps_local_cart(self):
        await self.sign_in()
        self.fake.fail("cart_items", table_error("insert failed", code="23502"), op="insert")

        with self.assertRaises(APIError):
            await self.data.add_to_cart("p1")

        self.assertEqual(self.data.cart_items, [])
        self.assertNotIn("cart", self.kinds)

    async def test_unknown_product_is_rejected(self):
        await self.sign_in()

        with self.assertRaises(ProductNotFoundError):
            await self.data.add_to_cart("missing")
        self.assertEqual(self.cart_rows(), [])

    # ---------- favorites ----------

    async def test_favorites_round_trip(self):
        await self.sign_in()

        await self.data.add_to_favorites("p1")
        self.assertTrue(self.data.is_favorite("p1"))
        await self.data.load()
        self.assertTrue(self.data.is_favorite("p1"))

        await self.data.remove_from_favorites("p1")
        self.assertFalse(self.data.is_favorite("p1"))
        self.assertEqual(self.fake.tables["favorites"], [])
        self.assertIn("favorites", self.kinds)

    # ---------- search history ----------

    async def test_search_history_newest_first_and_clear(self):
        await self.sign_in()

        await self.data.add_to_search_history("sofa")
        await self.data.add_to_search_history("tv")
        self.assertEqual([e.query for e in self.data.search_history], ["tv", "sofa"])

        await self.data.load()
        self.assertEqual([e.query for e in self.data.search_history], ["tv", "sofa"])

        await self.data.clear_search_history()
        self.assertEqual(self.data.search_history, [])
        self.assertEqual(self.fake.tables["search_history"], [])

    # ---------- checkout ----------

    async def test_checkout_creates_pending_order_and_empties_cart(self):
        await self.sign_in()
        await self.data.add_to_cart("p1", quantity=2)
        await self.data.add_to_cart("p2")

        order = await self.data.checkout()

        self.assertEqual(order.status, "pending")
        self.assertEqual(order.total_amount, 25000)
        lines = self.fake.tables["order_items"]
        self.assertEqual(
            sorted((r["product_id"], r["quantity"], r["price"]) for r in lines),
            [("p1", 2, 10000), ("p2", 1, 5000)],
        )
        self.assertTrue(all(r["order_id"] == order.id for r in lines))
        self.assertEqual(self.data.cart_items, [])
        self.assertEqual(self.cart_rows(), [])

    async def test_checkout_removes_order_when_lines_fail(self):
        await self.sign_in()
        await self.data.add_to_cart("p1")
        self.fake.fail(
            "order_items", table_error("insert or update violates foreign key", code="23503")
        )

        with self.assertRaises(APIError):
            await self.data.checkout()

        self.assertEqual(self.fake.tables["orders"], [])
        self.assertEqual(self.data.cart_quantity("p1"), 1)
        self.assertEqual(len(self.cart_rows()), 1)

    async def test_checkout_keeps_order_when_cart_cleanup_fails(self):
        await self.sign_in()
        await self.data.add_to_cart("p1")
        await self.data.add_to_cart("p2")
        self.fake.fail("cart_items", table_error("permission denied", code="42501"), op="delete")

        order = await self.data.checkout()

        self.assertIsNotNone(order)
        self.assertEqual(len(self.fake.tables["orders"]), 1)
        # the line that could not be removed stays, the rest is cleared
        self.assertEqual([i.product.id for i in self.data.cart_items], ["p1"])
        self.assertEqual([r["product_id"] for r in self.cart_rows()], ["p1"])

    async def test_checkout_with_empty_cart_raises(self):
        await self.sign_in()

        with self.assertRaises(ValueError):
            await self.data.checkout()
        self.assertEqual(self.fake.tables["orders"], [])


if __name__ == "__main__":
    unittest.main()

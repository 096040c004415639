from decimal import Decimal

from cart.store import CartStore


def make_item(item_id, product_id, quantity, price="10.00"):
    return {
        "id": item_id,
        "product_id": product_id,
        "quantity": quantity,
        "product": {
            "id": product_id,
            "name": f"Product {product_id}",
            "slug": f"product-{product_id}",
            "price": Decimal(price),
            "compare_at_price": None,
            "primary_image": None,
            "stock": 10,
            "category_id": 1,
        },
    }


class FakeBackend:
    """In-memory stand-in for the request-bound cart actions"""

    def __init__(self, items=None, fail=None):
        self.items = {item["product_id"]: item for item in items or []}
        self.fail = fail or {}
        self.calls = []
        self.seen_during_update = None

    def load_cart(self):
        self.calls.append("load_cart")
        if self.fail.get("load_cart"):
            raise RuntimeError("database unavailable")
        return {"id": 1, "user_id": None, "status": "active", "items": list(self.items.values())}

    def _failure(self, name):
        return {"success": False, "message": self.fail[name]}

    def add_item_to_cart(self, product_id, quantity):
        self.calls.append("add_item_to_cart")
        if self.fail.get("add_item_to_cart"):
            return self._failure("add_item_to_cart")
        current = self.items.get(product_id)
        new_quantity = quantity + (current["quantity"] if current else 0)
        self.items[product_id] = make_item(len(self.items) + 1, product_id, new_quantity)
        return {"success": True, "message": "added"}

    def update_cart_item(self, product_id, quantity):
        self.calls.append("update_cart_item")
        if self.fail.get("update_cart_item"):
            return self._failure("update_cart_item")
        if quantity <= 0:
            self.items.pop(product_id, None)
        else:
            self.items[product_id] = {**self.items[product_id], "quantity": quantity}
        return {"success": True, "message": "updated"}

    def remove_cart_item(self, product_id):
        self.calls.append("remove_cart_item")
        if self.fail.get("remove_cart_item"):
            return self._failure("remove_cart_item")
        self.items.pop(product_id, None)
        return {"success": True, "message": "removed"}

    def clear_cart(self):
        self.calls.append("clear_cart")
        if self.fail.get("clear_cart"):
            return self._failure("clear_cart")
        self.items = {}
        return {"success": True, "message": "cleared"}


def loaded_store(backend):
    store = CartStore(backend)
    store.load_cart()
    return store


def test_update_quantity_to_zero_empties_cart():
    store = loaded_store(FakeBackend([make_item(1, 7, 2)]))

    result = store.update_quantity(7, 0)

    assert result["success"] is True
    assert store.items == []
    assert store.total_items == 0


def test_totals_follow_items():
    store = loaded_store(FakeBackend([make_item(1, 1, 2, "12.50"), make_item(2, 2, 3, "4.00")]))

    assert store.total_items == 5
    assert store.total_amount == Decimal("37.00")


def test_empty_store_totals_are_zero():
    store = CartStore(FakeBackend())
    assert store.total_items == 0
    assert store.total_amount == Decimal("0")


def test_update_quantity_applies_locally_before_server_call():
    backend = FakeBackend([make_item(1, 7, 2)])
    store = loaded_store(backend)

    original = backend.update_cart_item

    def spy(product_id, quantity):
        backend.seen_during_update = [item["quantity"] for item in store.items]
        return original(product_id, quantity)

    backend.update_cart_item = spy
    store.update_quantity(7, 5)

    assert backend.seen_during_update == [5]
    assert store.items[0]["quantity"] == 5


def test_failed_update_reconciles_with_server():
    backend = FakeBackend([make_item(1, 7, 2)], fail={"update_cart_item": "Only 3 unit(s) available in stock"})
    store = loaded_store(backend)

    store.update_quantity(7, 9)

    assert store.items[0]["quantity"] == 2
    assert store.error == "Only 3 unit(s) available in stock"
    assert backend.calls[-1] == "load_cart"


def test_remove_item_is_optimistic():
    backend = FakeBackend([make_item(1, 7, 2), make_item(2, 8, 1)])
    store = loaded_store(backend)

    store.remove_item(7)

    assert [item["product_id"] for item in store.items] == [8]
    assert backend.calls.count("load_cart") == 1


def test_failed_remove_restores_line():
    backend = FakeBackend([make_item(1, 7, 2)], fail={"remove_cart_item": "Cart not found"})
    store = loaded_store(backend)

    store.remove_item(7)

    assert [item["product_id"] for item in store.items] == [7]
    assert store.error == "Cart not found"


def test_add_item_waits_for_server_and_opens_drawer():
    store = loaded_store(FakeBackend())

    store.add_item(3, 2)

    assert store.total_items == 2
    assert store.is_open is True


def test_failed_add_keeps_state():
    backend = FakeBackend([make_item(1, 7, 2)], fail={"add_item_to_cart": "Product not found"})
    store = loaded_store(backend)

    store.add_item(99)

    assert store.total_items == 2
    assert store.error == "Product not found"
    assert store.is_open is False


def test_clear_cart_only_empties_on_success():
    failing = loaded_store(FakeBackend([make_item(1, 7, 2)], fail={"clear_cart": "Cart not found"}))
    failing.clear_cart()
    assert failing.total_items == 2

    working = loaded_store(FakeBackend([make_item(1, 7, 2)]))
    working.clear_cart()
    assert working.items == []


def test_failed_load_keeps_previous_state():
    backend = FakeBackend([make_item(1, 7, 2)])
    store = loaded_store(backend)

    backend.fail["load_cart"] = True
    assert store.load_cart() is False

    assert store.total_items == 2
    assert store.error == "Could not load your cart"
    assert store.is_loading is False


def test_open_and_close():
    store = CartStore(FakeBackend())
    store.open()
    assert store.is_open
    store.close()
    assert not store.is_open

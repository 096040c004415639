# cart/store.py
"""
Client-visible mirror of the server cart.

``CartStore`` holds the last cart read from the server and issues mutations
through a backend exposing the cart actions. Quantity updates and removals
are applied locally first and then reconciled against a fresh read; adding
items and clearing the cart wait for the server.
"""

import logging
from decimal import Decimal

from . import actions

logger = logging.getLogger(__name__)


class RequestCartBackend:
    """Cart actions bound to the current request"""

    def __init__(self, request):
        self.request = request

    def load_cart(self):
        return actions.load_cart(self.request)

    def add_item_to_cart(self, product_id, quantity):
        return actions.add_item_to_cart(self.request, product_id, quantity)

    def update_cart_item(self, product_id, quantity):
        return actions.update_cart_item(self.request, product_id, quantity)

    def remove_cart_item(self, product_id):
        return actions.remove_cart_item(self.request, product_id)

    def clear_cart(self):
        return actions.clear_cart(self.request)


class CartStore:
    def __init__(self, backend):
        self.backend = backend
        self.cart_id = None
        self.items = []
        self.is_open = False
        self.is_loading = False
        self.error = None

    @classmethod
    def for_request(cls, request):
        return cls(RequestCartBackend(request))

    # ---------- derived state ----------

    @property
    def total_items(self):
        return sum(item['quantity'] for item in self.items)

    @property
    def total_amount(self):
        return sum(
            (Decimal(str(item['product']['price'])) * item['quantity'] for item in self.items),
            Decimal('0'),
        )

    def open(self):
        self.is_open = True

    def close(self):
        self.is_open = False

    # ---------- server round-trips ----------

    def load_cart(self):
        """Replace local state with the server cart; keep it if the read fails."""
        self.is_loading = True
        try:
            cart = self.backend.load_cart()
        except Exception:
            logger.error("Cart load failed", exc_info=True)
            self.error = 'Could not load your cart'
            return False
        finally:
            self.is_loading = False

        self.cart_id = cart['id'] if cart else None
        self.items = list(cart['items']) if cart else []
        self.error = None
        return True

    def add_item(self, product_id, quantity=1):
        result = self.backend.add_item_to_cart(product_id, quantity)
        if result['success']:
            self.load_cart()
            self.open()
        else:
            self.error = result['message']
        return result

    def update_quantity(self, product_id, quantity):
        if quantity <= 0:
            self.items = [item for item in self.items if item['product_id'] != product_id]
        else:
            self.items = [
                {**item, 'quantity': quantity} if item['product_id'] == product_id else item
                for item in self.items
            ]

        result = self.backend.update_cart_item(product_id, quantity)
        self.load_cart()
        if not result['success']:
            self.error = result['message']
        return result

    def remove_item(self, product_id):
        self.items = [item for item in self.items if item['product_id'] != product_id]

        result = self.backend.remove_cart_item(product_id)
        if not result['success']:
            self.load_cart()
            self.error = result['message']
        return result

    def clear_cart(self):
        result = self.backend.clear_cart()
        if result['success']:
            self.items = []
        else:
            self.error = result['message']
        return result

    def as_dict(self):
        return {
            'cart_id': self.cart_id,
            'items': [
                {
                    'id': item['id'],
                    'product_id': item['product_id'],
                    'quantity': item['quantity'],
                    'name': item['product']['name'],
                    'slug': item['product']['slug'],
                    'price': str(item['product']['price']),
                    'image': item['product']['primary_image'],
                    'stock': item['product']['stock'],
                }
                for item in self.items
            ],
            'total_items': self.total_items,
            'total_amount': str(self.total_amount),
            'is_open': self.is_open,
            'error': self.error,
        }

# cart/actions.py
"""
Server-side cart actions.

The current cart is the logged-in user's active cart, or the anonymous cart
named by the signed ``cart_id`` cookie. Cookie changes are queued on the
request and written to the response by ``cart.middleware.CartCookieMiddleware``.
Mutating actions return ``{'success': bool, 'message': str}``.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum

from catalog.models import Product
from core.exceptions import UNEXPECTED_ERROR_MESSAGE
from .models import Cart, CartItem

logger = logging.getLogger(__name__)

CART_COOKIE_SALT = 'cart.cart_id'


# ============================================
# COOKIE HELPERS
# ============================================

def queue_cart_cookie(request, cart_id):
    request.cart_cookie = ('set', cart_id)


def queue_cart_cookie_delete(request):
    request.cart_cookie = ('delete', None)


def get_cookie_cart_id(request):
    """Anonymous cart id from the queued value or the signed cookie"""
    queued = getattr(request, 'cart_cookie', None)
    if queued is not None:
        action, cart_id = queued
        return cart_id if action == 'set' else None

    value = request.get_signed_cookie(settings.CART_COOKIE_NAME, default=None, salt=CART_COOKIE_SALT)
    if value and value.isdigit():
        return int(value)
    return None


def _result(success, message, **extra):
    return {'success': success, 'message': message, **extra}


# ============================================
# CART LOOKUP
# ============================================

def get_user_cart(user):
    return Cart.objects.filter(user=user, status=Cart.STATUS_ACTIVE).order_by('-created_at').first()


def get_anonymous_cart(request):
    cart_id = get_cookie_cart_id(request)
    if not cart_id:
        return None
    return Cart.objects.filter(id=cart_id, user__isnull=True, status=Cart.STATUS_ACTIVE).first()


def get_cart_id(request):
    """Id of the current active cart, or None"""
    if request.user.is_authenticated:
        cart = get_user_cart(request.user)
        return cart.id if cart else None

    cart = get_anonymous_cart(request)
    return cart.id if cart else None


def create_cart(request):
    """Create an active cart; anonymous carts are remembered in the cookie"""
    user = request.user if request.user.is_authenticated else None
    cart = Cart.objects.create(user=user, status=Cart.STATUS_ACTIVE)

    if user is None:
        queue_cart_cookie(request, cart.id)

    return cart


def serialize_cart_item(item):
    product = item.product
    return {
        'id': item.id,
        'product_id': item.product_id,
        'quantity': item.quantity,
        'product': {
            'id': product.id,
            'name': product.name,
            'slug': product.slug,
            'price': product.price,
            'compare_at_price': product.compare_at_price,
            'primary_image': product.primary_image,
            'stock': product.stock,
            'category_id': product.category_id,
        },
    }


def load_cart(request):
    """Current cart with its items and live product data, or None"""
    cart_id = get_cart_id(request)
    if not cart_id:
        return None

    cart = Cart.objects.filter(id=cart_id).first()
    if cart is None:
        return None

    items = cart.items.select_related('product').prefetch_related('product__images')
    return {
        'id': cart.id,
        'user_id': cart.user_id,
        'status': cart.status,
        'items': [serialize_cart_item(item) for item in items],
    }


def cart_line_items(cart):
    """Lines in the shape used by the coupon validator and order calculator"""
    return [
        {
            'id': item.id,
            'product_id': item.product_id,
            'category_id': item.product.category_id,
            'name': item.product.name,
            'price': item.product.price,
            'quantity': item.quantity,
        }
        for item in cart.items.select_related('product')
    ]


def get_cart_item_count(request):
    cart_id = get_cart_id(request)
    if not cart_id:
        return 0
    return CartItem.objects.filter(cart_id=cart_id).aggregate(total=Sum('quantity'))['total'] or 0


# ============================================
# MUTATIONS
# ============================================

def add_item_to_cart(request, product_id, quantity=1):
    """Add a product, summing into an existing line"""
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        return _result(False, 'Invalid quantity')

    if quantity < 1:
        return _result(False, 'Quantity must be at least 1')

    try:
        product = Product.objects.filter(id=product_id).first()
        if product is None:
            return _result(False, 'Product not found')

        if product.status != Product.STATUS_ACTIVE:
            return _result(False, 'This product is not available')

        with transaction.atomic():
            cart_id = get_cart_id(request)
            existing = None
            if cart_id:
                existing = CartItem.objects.select_for_update().filter(
                    cart_id=cart_id, product=product
                ).first()

            new_quantity = quantity + (existing.quantity if existing else 0)
            if new_quantity > product.stock:
                return _result(False, f'Only {product.stock} unit(s) of {product.name} available in stock')

            if existing:
                existing.quantity = new_quantity
                existing.save(update_fields=['quantity', 'updated_at'])
            else:
                if not cart_id:
                    cart_id = create_cart(request).id
                CartItem.objects.create(cart_id=cart_id, product=product, quantity=quantity)

        return _result(True, f'{product.name} added to cart')

    except Exception:
        logger.error("add_item_to_cart failed for product %s", product_id, exc_info=True)
        return _result(False, UNEXPECTED_ERROR_MESSAGE)


def update_cart_item(request, product_id, quantity):
    """Set a line's quantity; zero or less removes the line"""
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        return _result(False, 'Invalid quantity')

    try:
        cart_id = get_cart_id(request)
        if not cart_id:
            return _result(False, 'Cart not found')

        if quantity <= 0:
            CartItem.objects.filter(cart_id=cart_id, product_id=product_id).delete()
            return _result(True, 'Item removed from cart')

        item = CartItem.objects.select_related('product').filter(cart_id=cart_id, product_id=product_id).first()
        if item is None:
            return _result(False, 'This product is not in your cart')

        if quantity > item.product.stock:
            return _result(False, f'Only {item.product.stock} unit(s) available in stock')

        item.quantity = quantity
        item.save(update_fields=['quantity', 'updated_at'])
        return _result(True, 'Cart updated')

    except Exception:
        logger.error("update_cart_item failed for product %s", product_id, exc_info=True)
        return _result(False, UNEXPECTED_ERROR_MESSAGE)


def remove_cart_item(request, product_id):
    try:
        cart_id = get_cart_id(request)
        if not cart_id:
            return _result(False, 'Cart not found')

        CartItem.objects.filter(cart_id=cart_id, product_id=product_id).delete()
        return _result(True, 'Item removed from cart')

    except Exception:
        logger.error("remove_cart_item failed for product %s", product_id, exc_info=True)
        return _result(False, UNEXPECTED_ERROR_MESSAGE)


def clear_cart(request):
    try:
        cart_id = get_cart_id(request)
        if not cart_id:
            return _result(False, 'Cart not found')

        CartItem.objects.filter(cart_id=cart_id).delete()
        return _result(True, 'Cart cleared')

    except Exception:
        logger.error("clear_cart failed", exc_info=True)
        return _result(False, UNEXPECTED_ERROR_MESSAGE)


# ============================================
# ANONYMOUS -> USER MIGRATION
# ============================================

def check_pending_cart_migration(request):
    """Whether the anonymous cart and the user's cart both hold items"""
    empty = {
        'has_pending_migration': False,
        'anonymous_items_count': 0,
        'user_items_count': 0,
    }
    if not request.user.is_authenticated:
        return empty

    anonymous_cart = get_anonymous_cart(request)
    if anonymous_cart is None:
        return empty

    anonymous_count = anonymous_cart.items.count()
    user_cart = get_user_cart(request.user)
    user_count = user_cart.items.count() if user_cart else 0

    return {
        'has_pending_migration': anonymous_count > 0 and user_count > 0,
        'anonymous_items_count': anonymous_count,
        'user_items_count': user_count,
    }


def migrate_anonymous_cart(request, should_merge):
    """
    Resolve the anonymous cart after login.

    Without a user cart the anonymous cart is handed to the user. Otherwise
    ``should_merge`` sums its lines into the user's cart, and the anonymous
    cart is dropped either way.
    """
    if not request.user.is_authenticated:
        return _result(False, 'You must be logged in')

    anonymous_cart = get_anonymous_cart(request)
    if anonymous_cart is None or not anonymous_cart.items.exists():
        queue_cart_cookie_delete(request)
        return _result(True, 'No guest cart to migrate')

    anonymous_cart_id = anonymous_cart.id

    try:
        with transaction.atomic():
            user_cart = get_user_cart(request.user)

            if user_cart is None:
                anonymous_cart.user = request.user
                anonymous_cart.save(update_fields=['user', 'updated_at'])
                message = 'Cart moved to your account'
            else:
                if should_merge:
                    existing = {item.product_id: item for item in user_cart.items.all()}
                    for item in anonymous_cart.items.all():
                        if item.product_id in existing:
                            CartItem.objects.filter(id=existing[item.product_id].id).update(
                                quantity=F('quantity') + item.quantity
                            )
                        else:
                            CartItem.objects.create(
                                cart=user_cart,
                                product_id=item.product_id,
                                quantity=item.quantity,
                            )
                    message = 'Carts merged'
                else:
                    message = 'Kept your saved cart'

                anonymous_cart.delete()

        queue_cart_cookie_delete(request)
        logger.info("Anonymous cart %s migrated for user %s (merge=%s)", anonymous_cart_id, request.user.pk, should_merge)
        return _result(True, message)

    except Exception:
        logger.error("migrate_anonymous_cart failed", exc_info=True)
        return _result(False, UNEXPECTED_ERROR_MESSAGE)

# orders/services.py
"""
Checkout: turns the current cart into an order.
"""

import logging
import secrets
import string
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from cart.actions import cart_line_items, queue_cart_cookie_delete
from cart.models import Cart, CartItem
from catalog.models import Product
from core.exceptions import ActionError, UNEXPECTED_ERROR_MESSAGE
from promotions.models import Coupon, CouponRedemption
from promotions.validation import validate_coupon
from .calculations import calculate_order_totals
from .forms import CheckoutForm
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

MONEY = Decimal('0.01')
PUBLIC_ID_ALPHABET = string.ascii_letters + string.digits + '_-'


# ─────────────────────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────────────────────

def generate_public_id():
    """ORD- followed by 12 URL-safe random characters"""
    random_str = ''.join(secrets.choice(PUBLIC_ID_ALPHABET) for _ in range(12))
    return f"ORD-{random_str}"


def quantize_money(value):
    return Decimal(value).quantize(MONEY)


def stored_shipping_address(user):
    """Shipping snapshot built from the user's saved address, or None"""
    if user is None or not user.has_stored_address:
        return None

    return {
        'full_name': user.full_name,
        'line1': user.address_line1,
        'line2': user.address_line2,
        'city': user.city,
        'region': user.region,
        'postal_code': '',
        'country_code': 'PE',
        'phone': user.phone,
    }


def form_shipping_address(data):
    return {
        'full_name': data.get('full_name', ''),
        'line1': data.get('line1', ''),
        'line2': data.get('line2', ''),
        'city': data.get('city', ''),
        'region': data.get('region', ''),
        'postal_code': data.get('postal_code', ''),
        'country_code': data.get('country_code', ''),
        'phone': data.get('phone', ''),
    }


def _lock_coupon_for_redemption(coupon_id, user_id):
    """
    Re-check the redemption caps with the coupon row locked.

    Concurrent checkouts using the same coupon serialize here, so the caps
    cannot be overrun between validation and the redemption insert.
    """
    coupon = Coupon.objects.select_for_update().get(id=coupon_id)

    if coupon.max_uses is not None:
        if CouponRedemption.objects.filter(coupon=coupon).count() >= coupon.max_uses:
            raise ActionError('Coupon usage limit reached')

    if user_id and coupon.max_uses_per_user is not None:
        if CouponRedemption.objects.filter(coupon=coupon, user_id=user_id).count() >= coupon.max_uses_per_user:
            raise ActionError('You have already used this coupon the maximum number of times allowed')

    return coupon


# ─────────────────────────────────────────────────────────────
# PLACE ORDER
# ─────────────────────────────────────────────────────────────

def place_order(request, data, cart_id):
    """
    Create an order from a cart.

    Returns ``{'success': True, 'order_id', 'public_id'}`` or
    ``{'success': False, 'message'}``. All writes share one transaction.
    """
    form = CheckoutForm(data)
    if not form.is_valid():
        first_error = next(iter(form.errors.values()))[0]
        return {'success': False, 'message': first_error, 'errors': form.errors}

    validated = form.cleaned_data
    user = request.user if request.user.is_authenticated else None
    user_id = user.id if user else None

    if validated['use_stored_address'] and user is None:
        return {'success': False, 'message': 'Sign in to use a stored address'}

    cart = Cart.objects.filter(id=cart_id, status=Cart.STATUS_ACTIVE).first() if cart_id else None
    if cart is None:
        return {'success': False, 'message': 'Cart not found'}

    if user is not None and cart.user_id not in (None, user_id):
        return {'success': False, 'message': 'Cart not found'}

    items = cart_line_items(cart)
    if not items:
        return {'success': False, 'message': 'Your cart is empty'}

    stock = dict(Product.objects.filter(id__in=[i['product_id'] for i in items]).values_list('id', 'stock'))
    for item in items:
        if stock.get(item['product_id'], 0) < item['quantity']:
            return {
                'success': False,
                'message': f"Not enough stock for {item['name']}. Available: {stock.get(item['product_id'], 0)}",
            }

    if validated['use_stored_address'] and user is not None:
        address = stored_shipping_address(user)
        if address is None:
            return {'success': False, 'message': 'No stored address found'}
    else:
        address = form_shipping_address(validated)

    coupon_terms = None
    if validated['coupon_code']:
        validation = validate_coupon(validated['coupon_code'], items, user_id)
        if not validation['valid']:
            return {'success': False, 'message': validation['error']}
        coupon_terms = validation['coupon']

    totals = calculate_order_totals(items, coupon_terms, settings.STORE_TAX_RATE)

    try:
        with transaction.atomic():
            coupon = None
            if coupon_terms:
                coupon = _lock_coupon_for_redemption(coupon_terms['id'], user_id)

            order = Order.objects.create(
                public_id=generate_public_id(),
                user=user,
                email=validated['email'],
                status=Order.STATUS_CREATED,
                currency=settings.STORE_CURRENCY,
                subtotal=quantize_money(totals['subtotal']),
                discount_total=quantize_money(totals['discount']),
                tax_total=quantize_money(totals['tax']),
                shipping_total=quantize_money(totals['shipping']),
                total=quantize_money(totals['total']),
                coupon_code=coupon.code if coupon else '',
                notes=validated.get('notes', ''),
                shipping_full_name=address['full_name'],
                shipping_line1=address['line1'],
                shipping_line2=address['line2'] or '',
                shipping_city=address['city'],
                shipping_region=address['region'] or '',
                shipping_postal_code=address['postal_code'] or '',
                shipping_country_code=address['country_code'],
                shipping_phone=address['phone'] or '',
                placed_at=timezone.now(),
            )

            for item in items:
                OrderItem.objects.create(
                    order=order,
                    product_id=item['product_id'],
                    product_name=item['name'],
                    unit_price=item['price'],
                    quantity=item['quantity'],
                )
                updated = Product.objects.filter(
                    id=item['product_id'], stock__gte=item['quantity']
                ).update(stock=F('stock') - item['quantity'])
                if not updated:
                    raise ActionError(f"Not enough stock for {item['name']}")

            if coupon:
                CouponRedemption.objects.create(coupon=coupon, user=user, order=order)

            CartItem.objects.filter(cart=cart).delete()
            cart.status = Cart.STATUS_CONVERTED
            cart.save(update_fields=['status', 'updated_at'])

    except ActionError as e:
        return {'success': False, 'message': str(e)}
    except Exception:
        logger.error("place_order failed for cart %s", cart_id, exc_info=True)
        return {'success': False, 'message': UNEXPECTED_ERROR_MESSAGE}

    if user is None:
        queue_cart_cookie_delete(request)
    request.session.pop('applied_coupon', None)

    logger.info("Order %s created for %s", order.public_id, order.email)
    return {'success': True, 'order_id': order.id, 'public_id': order.public_id}

# promotions/validation.py
from decimal import Decimal

from django.utils import timezone

from .models import Coupon, CouponRedemption


def _coupon_terms(coupon, product_ids, category_ids):
    return {
        'id': coupon.id,
        'code': coupon.code,
        'type': coupon.type,
        'value': coupon.value,
        'eligible_product_ids': product_ids,
        'eligible_category_ids': category_ids,
    }


def _eligibility_sets(coupon):
    product_ids = list(coupon.products.values_list('id', flat=True))
    category_ids = list(coupon.categories.values_list('id', flat=True))
    return product_ids, category_ids


def _check_coupon_state(code, user_id):
    """
    Existence, active flag, validity window and redemption caps.

    Returns ``(coupon, None)`` when every check passes, otherwise
    ``(None, reason)``.
    """
    code = (code or '').strip()
    coupon = Coupon.objects.filter(code=code).first() if code else None
    if coupon is None:
        return None, 'Coupon not found'

    if not coupon.is_active:
        return None, 'This coupon is not active'

    now = timezone.now()

    if coupon.starts_at and coupon.starts_at > now:
        return None, 'This coupon is not yet available'

    if coupon.ends_at and coupon.ends_at < now:
        return None, 'This coupon has expired'

    if coupon.max_uses is not None:
        redemption_count = CouponRedemption.objects.filter(coupon=coupon).count()
        if redemption_count >= coupon.max_uses:
            return None, 'Coupon usage limit reached'

    if user_id and coupon.max_uses_per_user is not None:
        user_count = CouponRedemption.objects.filter(coupon=coupon, user_id=user_id).count()
        if user_count >= coupon.max_uses_per_user:
            return None, 'You have already used this coupon the maximum number of times allowed'

    return coupon, None


def validate_coupon(code, cart_items, user_id=None):
    """
    Validate a coupon code against cart contents.

    ``cart_items`` are dicts with ``product_id``, ``category_id``, ``price``
    and ``quantity``. Checks run in order and stop at the first failure.
    Returns ``{'valid': False, 'error': reason}`` or
    ``{'valid': True, 'coupon': terms}``.
    """
    coupon, error = _check_coupon_state(code, user_id)
    if error:
        return {'valid': False, 'error': error}

    subtotal = sum(
        (Decimal(str(item['price'])) * item['quantity'] for item in cart_items),
        Decimal('0'),
    )
    if coupon.min_subtotal is not None and subtotal < coupon.min_subtotal:
        return {
            'valid': False,
            'error': f'The minimum subtotal for this coupon is ${coupon.min_subtotal:.2f}',
        }

    product_ids, category_ids = _eligibility_sets(coupon)

    if product_ids or category_ids:
        has_eligible_item = any(
            item['product_id'] in product_ids or item.get('category_id') in category_ids
            for item in cart_items
        )
        if not has_eligible_item:
            return {
                'valid': False,
                'error': 'This coupon does not apply to the products in your cart',
            }

    return {'valid': True, 'coupon': _coupon_terms(coupon, product_ids, category_ids)}


def validate_coupon_basic(code, user_id=None):
    """Same as ``validate_coupon`` without the subtotal and cart checks."""
    coupon, error = _check_coupon_state(code, user_id)
    if error:
        return {'valid': False, 'error': error}

    product_ids, category_ids = _eligibility_sets(coupon)
    return {'valid': True, 'coupon': _coupon_terms(coupon, product_ids, category_ids)}

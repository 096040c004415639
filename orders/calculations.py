# orders/calculations.py
"""
Order total calculator.

Pure functions over ``Decimal``. Cart lines are dicts with ``id``,
``product_id``, ``category_id``, ``name``, ``price`` and ``quantity``;
coupon terms are the descriptor returned by
``promotions.validation.validate_coupon``.
"""

from decimal import Decimal

ZERO = Decimal('0')

FREE_SHIPPING_THRESHOLD = Decimal('50')
FLAT_SHIPPING = Decimal('5')


def _money(value):
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def line_total(item):
    return _money(item['price']) * item['quantity']


def calculate_subtotal(items):
    """Sum of price x quantity over every line."""
    return sum((line_total(item) for item in items), ZERO)


def _is_eligible(item, product_ids, category_ids):
    return item['product_id'] in product_ids or item.get('category_id') in category_ids


def calculate_eligible_subtotal(items, eligible_product_ids=None, eligible_category_ids=None):
    """
    Subtotal of the lines a coupon may discount.

    With no product or category restriction every line is eligible.
    Returns ``{'subtotal': Decimal, 'eligible_item_ids': [...]}``.
    """
    product_ids = set(eligible_product_ids or [])
    category_ids = set(eligible_category_ids or [])

    if not product_ids and not category_ids:
        return {
            'subtotal': calculate_subtotal(items),
            'eligible_item_ids': [item['id'] for item in items],
        }

    eligible = [item for item in items if _is_eligible(item, product_ids, category_ids)]
    return {
        'subtotal': calculate_subtotal(eligible),
        'eligible_item_ids': [item['id'] for item in eligible],
    }


def calculate_discount(coupon_type, coupon_value, eligible_subtotal, items, eligible_item_ids):
    """
    Discount for a coupon and its split across the eligible lines.

    ``percent`` takes value% of each eligible line. ``fixed`` is capped at the
    eligible subtotal and spread in proportion to each line's share of it.
    """
    value = _money(coupon_value)
    eligible_subtotal = _money(eligible_subtotal)
    eligible_ids = set(eligible_item_ids)
    eligible_items = [item for item in items if item['id'] in eligible_ids]

    applied_to_items = []

    if coupon_type == 'percent':
        discount = eligible_subtotal * value / 100
        for item in eligible_items:
            applied_to_items.append({
                'item_id': item['id'],
                'product_id': item['product_id'],
                'product_name': item.get('name', ''),
                'discount': line_total(item) * value / 100,
            })

    elif coupon_type == 'fixed':
        discount = min(value, eligible_subtotal)
        for item in eligible_items:
            share = line_total(item) / eligible_subtotal if eligible_subtotal > 0 else ZERO
            applied_to_items.append({
                'item_id': item['id'],
                'product_id': item['product_id'],
                'product_name': item.get('name', ''),
                'discount': discount * share,
            })

    else:
        discount = ZERO

    return {
        'discount': max(ZERO, discount),
        'eligible_item_ids': list(eligible_item_ids),
        'applied_to_items': applied_to_items,
    }


def calculate_tax(subtotal, discount, tax_rate=ZERO):
    """Tax on the discounted subtotal; never negative."""
    return max(ZERO, _money(subtotal) - _money(discount)) * _money(tax_rate)


def calculate_shipping(subtotal):
    """Free from the threshold up, flat rate below it."""
    if _money(subtotal) >= FREE_SHIPPING_THRESHOLD:
        return ZERO
    return FLAT_SHIPPING


def calculate_order_totals(items, coupon=None, tax_rate=ZERO):
    """
    Full breakdown for a cart.

    Returns ``subtotal``, ``eligible_subtotal``, ``discount``,
    ``discount_details`` (``None`` without a coupon), ``tax``, ``shipping``
    and ``total``. Nothing is rounded here; callers quantize when persisting.
    """
    subtotal = calculate_subtotal(items)
    eligible_subtotal = subtotal
    discount = ZERO
    discount_details = None

    if coupon:
        eligible = calculate_eligible_subtotal(
            items,
            coupon.get('eligible_product_ids'),
            coupon.get('eligible_category_ids'),
        )
        eligible_subtotal = eligible['subtotal']
        discount_details = calculate_discount(
            coupon['type'],
            coupon['value'],
            eligible_subtotal,
            items,
            eligible['eligible_item_ids'],
        )
        discount = discount_details['discount']

    tax = calculate_tax(subtotal, discount, tax_rate)
    shipping = calculate_shipping(subtotal)
    total = max(ZERO, subtotal - discount + tax + shipping)

    return {
        'subtotal': subtotal,
        'eligible_subtotal': eligible_subtotal,
        'discount': discount,
        'discount_details': discount_details,
        'tax': tax,
        'shipping': shipping,
        'total': total,
    }

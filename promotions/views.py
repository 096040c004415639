# promotions/views.py
from decimal import Decimal

from django.contrib import messages
from django.http import JsonResponse
from django.shortcuts import redirect
from django.views.decorators.http import require_POST, require_GET

from cart.actions import cart_line_items, get_cart_id
from cart.models import Cart
from orders.calculations import calculate_order_totals
from .validation import validate_coupon, validate_coupon_basic

MONEY = Decimal('0.01')


def _current_user_id(request):
    return request.user.id if request.user.is_authenticated else None


def _respond(request, payload):
    """JSON for AJAX callers, flash message and back to the cart otherwise"""
    if request.headers.get('X-Requested-With') == 'XMLHttpRequest':
        return JsonResponse(payload)

    if payload['success']:
        messages.success(request, payload['message'])
    else:
        messages.error(request, payload['error'])
    return redirect('cart:cart_view')


@require_POST
def apply_coupon(request):
    """Validate a code against the current cart and remember it for checkout."""
    coupon_code = request.POST.get('coupon_code', '').strip()
    if not coupon_code:
        return _respond(request, {'success': False, 'error': 'Please enter a coupon code'})

    cart_id = get_cart_id(request)
    cart = Cart.objects.filter(id=cart_id).first() if cart_id else None
    items = cart_line_items(cart) if cart else []
    if not items:
        return _respond(request, {'success': False, 'error': 'Your cart is empty'})

    result = validate_coupon(coupon_code, items, _current_user_id(request))
    if not result['valid']:
        return _respond(request, {'success': False, 'error': result['error']})

    totals = calculate_order_totals(items, result['coupon'])

    request.session['applied_coupon'] = {'code': result['coupon']['code']}
    request.session.modified = True

    return _respond(request, {
        'success': True,
        'code': result['coupon']['code'],
        'discount_amount': str(totals['discount'].quantize(MONEY)),
        'total': str(totals['total'].quantize(MONEY)),
        'message': f'Coupon "{result["coupon"]["code"]}" applied successfully!',
    })


@require_POST
def remove_coupon(request):
    """Remove applied coupon from session."""
    request.session.pop('applied_coupon', None)
    request.session.modified = True
    return _respond(request, {'success': True, 'message': 'Coupon removed'})


@require_GET
def check_coupon(request):
    """General applicability of a code, without cart contents."""
    result = validate_coupon_basic(request.GET.get('code', ''), _current_user_id(request))
    if not result['valid']:
        return JsonResponse({'valid': False, 'error': result['error']})

    coupon = result['coupon']
    return JsonResponse({
        'valid': True,
        'coupon': {
            'code': coupon['code'],
            'type': coupon['type'],
            'value': str(coupon['value']),
            'eligible_product_ids': coupon['eligible_product_ids'],
            'eligible_category_ids': coupon['eligible_category_ids'],
        },
    })

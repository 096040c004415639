# orders/views.py
from django.shortcuts import render, redirect, get_object_or_404
from django.contrib.auth.decorators import login_required
from django.contrib import messages
from django.core.paginator import Paginator

from django.conf import settings
from cart.actions import cart_line_items, get_cart_id
from cart.models import Cart
from promotions.validation import validate_coupon
from .calculations import calculate_order_totals
from .forms import CheckoutForm
from .models import Order
from .services import place_order


# ─────────────────────────────────────────────────────────────
# CHECKOUT
# ─────────────────────────────────────────────────────────────

def _checkout_preview(request, items, coupon_code):
    """Totals for the summary box; an invalid coupon is reported, not applied"""
    coupon_terms = None
    coupon_error = None
    if coupon_code:
        user_id = request.user.id if request.user.is_authenticated else None
        result = validate_coupon(coupon_code, items, user_id)
        if result['valid']:
            coupon_terms = result['coupon']
        else:
            coupon_error = result['error']

    totals = calculate_order_totals(items, coupon_terms, settings.STORE_TAX_RATE)
    return totals, coupon_error


def checkout(request):
    cart_id = get_cart_id(request)
    cart = Cart.objects.filter(id=cart_id).first() if cart_id else None
    items = cart_line_items(cart) if cart else []

    if not items:
        messages.warning(request, 'Your cart is empty.')
        return redirect('cart:cart_view')

    if request.method == 'POST':
        result = place_order(request, request.POST, cart_id)
        if result['success']:
            messages.success(request, 'Order placed successfully!')
            return redirect('orders:order_detail', public_id=result['public_id'])

        messages.error(request, result['message'])
        form = CheckoutForm(request.POST)
        coupon_code = request.POST.get('coupon_code', '').strip()
    else:
        applied = request.session.get('applied_coupon') or {}
        coupon_code = applied.get('code', '')
        initial = {'coupon_code': coupon_code}
        if request.user.is_authenticated:
            initial.update({
                'email': request.user.email,
                'full_name': request.user.full_name,
                'phone': request.user.phone,
                'line1': request.user.address_line1,
                'line2': request.user.address_line2,
                'city': request.user.city,
                'region': request.user.region,
            })
        form = CheckoutForm(initial=initial)

    totals, coupon_error = _checkout_preview(request, items, coupon_code)

    context = {
        'form': form,
        'items': items,
        'totals': totals,
        'coupon_code': coupon_code,
        'coupon_error': coupon_error,
        'has_stored_address': request.user.is_authenticated and request.user.has_stored_address,
    }
    return render(request, 'checkout.html', context)


# ─────────────────────────────────────────────────────────────
# ORDER PAGES
# ─────────────────────────────────────────────────────────────

def order_detail(request, public_id):
    """Order summary, reachable by its public id"""
    order = get_object_or_404(
        Order.objects.prefetch_related('items'),
        public_id=public_id,
    )
    return render(request, 'order_detail.html', {'order': order})


@login_required
def order_list(request):
    orders = Order.objects.filter(user=request.user).prefetch_related('items')
    page = Paginator(orders, 10).get_page(request.GET.get('page', 1))
    return render(request, 'order_list.html', {'orders': page})

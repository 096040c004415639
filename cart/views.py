# cart/views.py
from django.shortcuts import render, redirect
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_POST, require_GET
from django.utils.http import url_has_allowed_host_and_scheme
from decimal import Decimal

from orders.calculations import FREE_SHIPPING_THRESHOLD, calculate_order_totals
from .actions import (
    check_pending_cart_migration,
    get_cart_item_count,
    migrate_anonymous_cart,
)
from .store import CartStore


# ============================================
# HELPER FUNCTIONS
# ============================================

def is_ajax(request):
    return request.headers.get('X-Requested-With') == 'XMLHttpRequest'


def store_line_items(store):
    """CartStore items in the calculator's line shape"""
    return [
        {
            'id': item['id'],
            'product_id': item['product_id'],
            'category_id': item['product']['category_id'],
            'name': item['product']['name'],
            'price': item['product']['price'],
            'quantity': item['quantity'],
        }
        for item in store.items
    ]


def _parse_quantity(value, default=1):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _store_response(request, store, result, fallback='cart:cart_view'):
    """JSON for AJAX callers, flash message and redirect otherwise"""
    if is_ajax(request):
        status = 200 if result['success'] else 400
        return JsonResponse({
            'success': result['success'],
            'message': result['message'],
            'cart': store.as_dict(),
        }, status=status)

    if result['success']:
        messages.success(request, result['message'])
    else:
        messages.error(request, result['message'])

    next_url = request.POST.get('next')
    if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        return redirect(next_url)
    return redirect(fallback)


# ============================================
# CART VIEW PAGE
# ============================================

def cart_view(request):
    """Display cart contents"""
    store = CartStore.for_request(request)
    store.load_cart()

    totals = calculate_order_totals(store_line_items(store))
    free_shipping_remaining = max(Decimal('0.00'), FREE_SHIPPING_THRESHOLD - totals['subtotal'])
    shipping_progress = (
        min(100, float(totals['subtotal'] / FREE_SHIPPING_THRESHOLD * 100))
        if totals['subtotal'] > 0 else 0
    )

    context = {
        'store': store,
        'cart_items': store.items,
        'item_count': store.total_items,
        'subtotal': totals['subtotal'],
        'shipping': totals['shipping'] if store.items else Decimal('0.00'),
        'tax': totals['tax'],
        'total': totals['total'] if store.items else Decimal('0.00'),
        'free_shipping_remaining': free_shipping_remaining,
        'shipping_progress': shipping_progress,
        'applied_coupon': request.session.get('applied_coupon'),
    }

    return render(request, 'cart.html', context)


# ============================================
# CART MUTATIONS (form POST or AJAX)
# ============================================

@require_POST
def add_to_cart(request):
    """Add a product to the cart; not optimistic"""
    store = CartStore.for_request(request)
    product_id = request.POST.get('product_id')
    quantity = _parse_quantity(request.POST.get('quantity', 1))

    result = store.add_item(product_id, quantity)
    return _store_response(request, store, result)


@require_POST
def update_cart_item(request):
    """Set a line's quantity; zero removes it"""
    store = CartStore.for_request(request)
    store.load_cart()
    product_id = _parse_quantity(request.POST.get('product_id'), default=None)
    quantity = _parse_quantity(request.POST.get('quantity'), default=None)

    if quantity is None:
        result = {'success': False, 'message': 'Invalid quantity'}
    else:
        result = store.update_quantity(product_id, quantity)
    return _store_response(request, store, result)


@require_POST
def remove_from_cart(request):
    store = CartStore.for_request(request)
    store.load_cart()
    product_id = _parse_quantity(request.POST.get('product_id'), default=None)

    result = store.remove_item(product_id)
    return _store_response(request, store, result)


@require_POST
def clear_cart(request):
    """Clear all items from cart"""
    store = CartStore.for_request(request)
    store.load_cart()

    result = store.clear_cart()
    return _store_response(request, store, result)


# ============================================
# AJAX HELPERS
# ============================================

@require_GET
def cart_state(request):
    """Current cart as the mini-cart renders it"""
    store = CartStore.for_request(request)
    store.load_cart()
    return JsonResponse(store.as_dict())


@require_GET
def get_cart_count(request):
    """Return current cart total quantity"""
    return JsonResponse({'count': get_cart_item_count(request)})


# ============================================
# GUEST CART MIGRATION
# ============================================

@login_required
def cart_migrate(request):
    """Ask whether to merge the guest cart into the saved cart"""
    pending = check_pending_cart_migration(request)

    if request.method == 'POST':
        should_merge = request.POST.get('action') == 'merge'
        result = migrate_anonymous_cart(request, should_merge)

        if result['success']:
            messages.success(request, result['message'])
        else:
            messages.error(request, result['message'])
        return redirect('cart:cart_view')

    if not pending['has_pending_migration']:
        return redirect('cart:cart_view')

    return render(request, 'cart_migrate.html', {'pending': pending})


@login_required
@require_GET
def migration_status(request):
    return JsonResponse(check_pending_cart_migration(request))

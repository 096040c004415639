# adminpanel/views.py
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required, user_passes_test
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from cart.models import Cart
from catalog.models import Category, Product
from core.exceptions import ActionError
from orders.models import Order
from promotions.models import Coupon
from users.models import Role
from . import actions
from .forms import (
    CartForm, CategoryForm, CouponForm, OrderForm, ProductForm, ReviewForm,
    StoreSettingsForm, UserForm,
)


# Helper function to check if user is admin
def is_admin(user):
    return user.is_authenticated and not user.is_customer


def staff_required(view_func):
    return login_required(user_passes_test(is_admin, login_url='core:home')(view_func))


# ─────────────────────────────────────────────────────────────
# REQUEST PARSING
# ─────────────────────────────────────────────────────────────

def _bool_param(value):
    if value in ('true', '1', 'yes'):
        return True
    if value in ('false', '0', 'no'):
        return False
    return None


def _decimal_param(value):
    if not value:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        return None


def _list_params(request):
    return {
        'search': request.GET.get('search', '').strip(),
        'page': request.GET.get('page', 1),
        'per_page': request.GET.get('per_page', 10),
        'sort': request.GET.get('sort'),
    }


def _line_items(request, with_price=False):
    """Rows posted as parallel ``item_product`` / ``item_quantity`` / ``item_price`` lists"""
    product_ids = request.POST.getlist('item_product')
    quantities = request.POST.getlist('item_quantity')
    prices = request.POST.getlist('item_price')

    items = []
    for index, product_id in enumerate(product_ids):
        if not product_id:
            continue
        try:
            item = {
                'product_id': int(product_id),
                'quantity': int(quantities[index]),
            }
            if with_price:
                item['unit_price'] = Decimal(prices[index])
        except (IndexError, ValueError, InvalidOperation):
            raise ActionError('Every line needs a product, a whole quantity and a price')
        items.append(item)
    return items


def _product_images(request):
    urls = request.POST.getlist('image_url')
    alts = request.POST.getlist('image_alt')
    return [
        {'image_url': url.strip(), 'alt_text': alts[index] if index < len(alts) else ''}
        for index, url in enumerate(urls)
        if url.strip()
    ]


def _render_list(request, entity, result, filters=None, **extra):
    context = {
        'entity': entity,
        'result': result,
        'items': result['data'],
        'page_obj': result['page_obj'],
        'search': request.GET.get('search', ''),
        'sort': request.GET.get('sort', ''),
        'filters': filters or {},
    }
    context.update(extra)
    return render(request, f'adminpanel/{entity}/list.html', context)


def _render_form(request, entity, form, obj=None, **extra):
    context = {'entity': entity, 'form': form, 'object': obj}
    context.update(extra)
    return render(request, f'adminpanel/{entity}/form.html', context)


def _confirm_delete(request, entity, obj, delete_action, list_url):
    """GET shows a confirmation page, POST deletes and goes back to the list"""
    if request.method == 'POST':
        try:
            result = delete_action(obj.pk)
            messages.success(request, result['message'])
        except ActionError as e:
            messages.error(request, str(e))
        return redirect(list_url)

    return render(request, 'adminpanel/delete_confirm.html', {
        'entity': entity,
        'object': obj,
        'cancel_url': list_url,
    })


def _fetch(request, getter, pk):
    try:
        return getter(pk)
    except ActionError as e:
        messages.error(request, str(e))
        return None


# ==================== DASHBOARD ====================

@staff_required
def dashboard(request):
    """Admin dashboard with statistics"""
    stats = actions.get_dashboard_stats(low_stock_threshold=settings.LOW_STOCK_THRESHOLD)
    return render(request, 'adminpanel/dashboard.html', stats)


# ==================== CATEGORIES ====================

@staff_required
def category_list(request):
    """List all categories"""
    is_active = _bool_param(request.GET.get('is_active'))
    result = actions.get_categories_paginated(is_active=is_active, **_list_params(request))
    return _render_list(request, 'categories', result, {'is_active': is_active})


@staff_required
def category_add(request):
    form = CategoryForm(request.POST or None)

    if request.method == 'POST' and form.is_valid():
        try:
            result = actions.create_category(form.cleaned_data)
            messages.success(request, result['message'])
            return redirect('adminpanel:category_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(request, 'categories', form)


@staff_required
def category_edit(request, category_id):
    category = _fetch(request, actions.get_category, category_id)
    if category is None:
        return redirect('adminpanel:category_list')

    form = CategoryForm(request.POST or None, instance=category)

    if request.method == 'POST' and form.is_valid():
        try:
            result = actions.update_category(category_id, form.cleaned_data)
            messages.success(request, result['message'])
            return redirect('adminpanel:category_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(request, 'categories', form, category)


@staff_required
def category_delete(request, category_id):
    category = _fetch(request, actions.get_category, category_id)
    if category is None:
        return redirect('adminpanel:category_list')
    return _confirm_delete(request, 'categories', category, actions.delete_category, 'adminpanel:category_list')


# ==================== PRODUCTS ====================

@staff_required
def product_list(request):
    """List all products with filtering"""
    filters = {
        'category_ids': [pk for pk in request.GET.getlist('category') if pk.isdigit()],
        'status': request.GET.get('status') or None,
        'min_price': _decimal_param(request.GET.get('min_price')),
        'max_price': _decimal_param(request.GET.get('max_price')),
        'in_stock': _bool_param(request.GET.get('in_stock')),
    }
    result = actions.get_products_paginated(**filters, **_list_params(request))
    return _render_list(
        request, 'products', result, filters,
        categories=Category.objects.order_by('name'),
        statuses=Product.STATUS_CHOICES,
    )


@staff_required
def product_add(request):
    form = ProductForm(request.POST or None)

    if request.method == 'POST' and form.is_valid():
        try:
            result = actions.create_product(form.cleaned_data, _product_images(request))
            messages.success(request, result['message'])
            return redirect('adminpanel:product_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(request, 'products', form)


@staff_required
def product_edit(request, product_id):
    product = _fetch(request, actions.get_product, product_id)
    if product is None:
        return redirect('adminpanel:product_list')

    form = ProductForm(request.POST or None, instance=product)

    if request.method == 'POST' and form.is_valid():
        try:
            result = actions.update_product(product_id, form.cleaned_data, _product_images(request))
            messages.success(request, result['message'])
            return redirect('adminpanel:product_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(request, 'products', form, product, images=product.images.all())


@staff_required
def product_delete(request, product_id):
    product = _fetch(request, actions.get_product, product_id)
    if product is None:
        return redirect('adminpanel:product_list')
    return _confirm_delete(request, 'products', product, actions.delete_product, 'adminpanel:product_list')


# ==================== ORDERS ====================

@staff_required
def order_list(request):
    filters = {
        'status': request.GET.get('status') or None,
        'date_from': request.GET.get('date_from') or None,
        'date_to': request.GET.get('date_to') or None,
    }
    result = actions.get_orders_paginated(**filters, **_list_params(request))
    return _render_list(request, 'orders', result, filters, statuses=Order.ORDER_STATUS)


@staff_required
def order_detail(request, order_id):
    order = _fetch(request, actions.get_order, order_id)
    if order is None:
        return redirect('adminpanel:order_list')
    return render(request, 'adminpanel/orders/detail.html', {'entity': 'orders', 'order': order})


def _order_form_view(request, order=None):
    form = OrderForm(request.POST or None, initial=_order_initial(order))

    if request.method == 'POST' and form.is_valid():
        try:
            items = _line_items(request, with_price=True)
            if order is None:
                result = actions.create_order(form.cleaned_data, items)
            else:
                result = actions.update_order(order.pk, form.cleaned_data, items)
            messages.success(request, result['message'])
            return redirect('adminpanel:order_detail', order_id=result['result']['id'])
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(
        request, 'orders', form, order,
        products=Product.objects.order_by('name'),
        lines=order.items.all() if order else [],
    )


def _order_initial(order):
    if order is None:
        return None
    return {field: getattr(order, field) for field in OrderForm.base_fields}


@staff_required
def order_add(request):
    return _order_form_view(request)


@staff_required
def order_edit(request, order_id):
    order = _fetch(request, actions.get_order, order_id)
    if order is None:
        return redirect('adminpanel:order_list')
    return _order_form_view(request, order)


@staff_required
def order_delete(request, order_id):
    order = _fetch(request, actions.get_order, order_id)
    if order is None:
        return redirect('adminpanel:order_list')
    return _confirm_delete(request, 'orders', order, actions.delete_order, 'adminpanel:order_list')


# ==================== CARTS ====================

@staff_required
def cart_list(request):
    status = request.GET.get('status') or None
    result = actions.get_carts_paginated(status=status, **_list_params(request))
    return _render_list(request, 'carts', result, {'status': status}, statuses=Cart.STATUS_CHOICES)


def _cart_form_view(request, cart=None):
    initial = None
    if cart is not None:
        initial = {'user': cart.user, 'status': cart.status, 'expires_at': cart.expires_at}
    form = CartForm(request.POST or None, initial=initial)

    if request.method == 'POST' and form.is_valid():
        try:
            items = _line_items(request)
            if cart is None:
                result = actions.create_cart(form.cleaned_data, items)
            else:
                result = actions.update_cart(cart.pk, form.cleaned_data, items)
            messages.success(request, result['message'])
            return redirect('adminpanel:cart_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(
        request, 'carts', form, cart,
        products=Product.objects.order_by('name'),
        lines=cart.items.all() if cart else [],
    )


@staff_required
def cart_add(request):
    return _cart_form_view(request)


@staff_required
def cart_edit(request, cart_id):
    cart = _fetch(request, actions.get_cart, cart_id)
    if cart is None:
        return redirect('adminpanel:cart_list')
    return _cart_form_view(request, cart)


@staff_required
def cart_delete(request, cart_id):
    cart = _fetch(request, actions.get_cart, cart_id)
    if cart is None:
        return redirect('adminpanel:cart_list')
    return _confirm_delete(request, 'carts', cart, actions.delete_cart, 'adminpanel:cart_list')


# ==================== COUPONS ====================

@staff_required
def coupon_list(request):
    filters = {
        'coupon_type': request.GET.get('type') or None,
        'is_active': _bool_param(request.GET.get('is_active')),
        'is_valid': _bool_param(request.GET.get('is_valid')),
    }
    result = actions.get_coupons_paginated(**filters, **_list_params(request))
    return _render_list(request, 'coupons', result, filters, types=Coupon.TYPE_CHOICES)


@staff_required
def coupon_add(request):
    form = CouponForm(request.POST or None)

    if request.method == 'POST' and form.is_valid():
        try:
            result = actions.create_coupon(form.cleaned_data)
            messages.success(request, result['message'])
            return redirect('adminpanel:coupon_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(request, 'coupons', form)


@staff_required
def coupon_edit(request, coupon_id):
    coupon = _fetch(request, actions.get_coupon, coupon_id)
    if coupon is None:
        return redirect('adminpanel:coupon_list')

    form = CouponForm(request.POST or None, instance=coupon)

    if request.method == 'POST' and form.is_valid():
        try:
            result = actions.update_coupon(coupon_id, form.cleaned_data)
            messages.success(request, result['message'])
            return redirect('adminpanel:coupon_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(request, 'coupons', form, coupon)


@staff_required
def coupon_delete(request, coupon_id):
    coupon = _fetch(request, actions.get_coupon, coupon_id)
    if coupon is None:
        return redirect('adminpanel:coupon_list')
    return _confirm_delete(request, 'coupons', coupon, actions.delete_coupon, 'adminpanel:coupon_list')


# ==================== REVIEWS ====================

@staff_required
def review_list(request):
    filters = {
        'is_approved': _bool_param(request.GET.get('is_approved')),
        'product_id': request.GET.get('product') or None,
    }
    result = actions.get_reviews_paginated(**filters, **_list_params(request))
    return _render_list(request, 'reviews', result, filters)


@staff_required
def review_add(request):
    form = ReviewForm(request.POST or None)

    if request.method == 'POST' and form.is_valid():
        result = actions.create_review(form.cleaned_data)
        messages.success(request, result['message'])
        return redirect('adminpanel:review_list')

    return _render_form(request, 'reviews', form)


@staff_required
def review_edit(request, review_id):
    review = _fetch(request, actions.get_review, review_id)
    if review is None:
        return redirect('adminpanel:review_list')

    form = ReviewForm(request.POST or None, instance=review)

    if request.method == 'POST' and form.is_valid():
        result = actions.update_review(review_id, form.cleaned_data)
        messages.success(request, result['message'])
        return redirect('adminpanel:review_list')

    return _render_form(request, 'reviews', form, review)


@staff_required
@require_POST
def review_toggle_approval(request, review_id):
    try:
        result = actions.set_review_approval(review_id, request.POST.get('is_approved') == 'true')
        messages.success(request, result['message'])
    except ActionError as e:
        messages.error(request, str(e))
    return redirect('adminpanel:review_list')


@staff_required
def review_delete(request, review_id):
    review = _fetch(request, actions.get_review, review_id)
    if review is None:
        return redirect('adminpanel:review_list')
    return _confirm_delete(request, 'reviews', review, actions.delete_review, 'adminpanel:review_list')


# ==================== USERS ====================

@staff_required
def user_list(request):
    role = request.GET.get('role') or None
    result = actions.get_users_paginated(role=role, **_list_params(request))
    return _render_list(request, 'users', result, {'role': role}, roles=Role.objects.order_by('name'))


@staff_required
def user_add(request):
    form = UserForm(request.POST or None)

    if request.method == 'POST' and form.is_valid():
        try:
            result = actions.create_user(form.cleaned_data)
            messages.success(request, result['message'])
            return redirect('adminpanel:user_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(request, 'users', form)


@staff_required
def user_edit(request, user_id):
    user = _fetch(request, actions.get_user, user_id)
    if user is None:
        return redirect('adminpanel:user_list')

    form = UserForm(request.POST or None, instance=user)

    if request.method == 'POST' and form.is_valid():
        try:
            result = actions.update_user(user_id, form.cleaned_data)
            messages.success(request, result['message'])
            return redirect('adminpanel:user_list')
        except ActionError as e:
            messages.error(request, str(e))

    return _render_form(request, 'users', form, user)


@staff_required
def user_delete(request, user_id):
    user = _fetch(request, actions.get_user, user_id)
    if user is None:
        return redirect('adminpanel:user_list')

    def delete_action(pk):
        return actions.delete_user(pk, acting_user=request.user)

    return _confirm_delete(request, 'users', user, delete_action, 'adminpanel:user_list')


# ==================== STORE SETTINGS ====================

@staff_required
def store_settings(request):
    current = actions.get_settings()
    form = StoreSettingsForm(request.POST or None, instance=current)

    if request.method == 'POST' and form.is_valid():
        result = actions.save_settings(form.cleaned_data)
        messages.success(request, result['message'])
        return redirect('adminpanel:store_settings')

    return _render_form(request, 'settings', form, current)

# adminpanel/actions.py
"""
Back-office data operations.

Every entity exposes the same five operations: a paginated listing, a
lookup by id, create, update and delete. Writes that touch more than one
table run inside ``transaction.atomic()``. Business rule violations and
missing rows raise ``ActionError`` with a message fit for display; the
views turn those into flash messages.
"""
import logging
from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import (
    Avg, Count, DecimalField, ExpressionWrapper, F, ProtectedError, Q, Sum, Value,
)
from django.db.models.functions import Coalesce
from django.utils import timezone

from cart.models import Cart, CartItem
from catalog.models import Category, Product, ProductImage
from core.exceptions import ActionError
from core.pagination import paginate, parse_sort
from orders.models import Order, OrderItem
from orders.services import generate_public_id, quantize_money
from promotions.models import Coupon
from reviews.models import Review
from store.services import get_store_settings, update_store_settings
from users.forms import generate_username
from users.models import Role, User

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def _result(message, obj):
    return {'message': message, 'result': {'id': obj.id}}


def _get_or_raise(queryset, pk, label):
    try:
        return queryset.get(pk=pk)
    except (queryset.model.DoesNotExist, ValueError, TypeError):
        raise ActionError(f"{label} not found")


def _ensure_products_exist(product_ids):
    """Raise unless every id names an existing product"""
    product_ids = set(product_ids)
    found = set(Product.objects.filter(id__in=product_ids).values_list('id', flat=True))
    missing = product_ids - found
    if missing:
        raise ActionError(f"Product not found: {', '.join(str(pk) for pk in sorted(missing))}")


# ==================== CATEGORIES ====================

CATEGORY_SORTS = {
    'name': 'name',
    'slug': 'slug',
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
}


def get_categories_paginated(search='', is_active=None, page=1, per_page=10, sort=None):
    categories = Category.objects.select_related('parent').annotate(products_count=Count('products'))

    if search:
        categories = categories.filter(
            Q(name__icontains=search) | Q(slug__icontains=search) | Q(description__icontains=search)
        )
    if is_active is not None:
        categories = categories.filter(is_active=is_active)

    categories = categories.order_by(parse_sort(sort, CATEGORY_SORTS, 'name'))
    return paginate(categories, page, per_page)


def get_category(category_id):
    return _get_or_raise(Category.objects.select_related('parent'), category_id, 'Category')


def create_category(data):
    try:
        with transaction.atomic():
            category = Category.objects.create(**data)
    except IntegrityError:
        raise ActionError(f'A category with slug "{data.get("slug")}" already exists')
    logger.info("Category %s created", category.id)
    return _result(f'Category "{category.name}" created successfully', category)


def update_category(category_id, data):
    category = get_category(category_id)

    parent = data.get('parent')
    if parent is not None and parent.pk == category.pk:
        raise ActionError('A category cannot be its own parent')

    for field, value in data.items():
        setattr(category, field, value)
    try:
        with transaction.atomic():
            category.save()
    except IntegrityError:
        raise ActionError(f'A category with slug "{category.slug}" already exists')
    return _result(f'Category "{category.name}" updated successfully', category)


def delete_category(category_id):
    category = get_category(category_id)
    try:
        category.delete()
    except ProtectedError:
        raise ActionError('This category still has products. Move or delete them first')
    return {'message': f'Category "{category.name}" deleted successfully', 'result': {'id': category_id}}


# ==================== PRODUCTS ====================

PRODUCT_SORTS = {
    'name': 'name',
    'price': 'price',
    'stock': 'stock',
    'status': 'status',
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
}


def get_products_paginated(search='', category_ids=None, status=None, min_price=None,
                           max_price=None, in_stock=None, page=1, per_page=10, sort=None):
    products = Product.objects.select_related('category').prefetch_related('images')

    if search:
        products = products.filter(
            Q(name__icontains=search) | Q(sku__icontains=search) | Q(slug__icontains=search)
        )
    if category_ids:
        products = products.filter(category_id__in=category_ids)
    if status:
        products = products.filter(status=status)
    if min_price is not None:
        products = products.filter(price__gte=min_price)
    if max_price is not None:
        products = products.filter(price__lte=max_price)
    if in_stock is True:
        products = products.filter(stock__gt=0)
    elif in_stock is False:
        products = products.filter(stock=0)

    products = products.order_by(parse_sort(sort, PRODUCT_SORTS, '-created_at'))
    return paginate(products, page, per_page)


def get_product(product_id):
    return _get_or_raise(
        Product.objects.select_related('category').prefetch_related('images'), product_id, 'Product'
    )


def _replace_product_images(product, images):
    """Swap the product's gallery for ``images`` (dicts with image_url and alt_text)"""
    product.images.all().delete()
    ProductImage.objects.bulk_create([
        ProductImage(
            product=product,
            image_url=image['image_url'],
            alt_text=image.get('alt_text', ''),
            sort_order=position,
        )
        for position, image in enumerate(images)
        if image.get('image_url')
    ])


def create_product(data, images=()):
    try:
        with transaction.atomic():
            product = Product.objects.create(**data)
            _replace_product_images(product, images)
    except IntegrityError:
        raise ActionError('A product with this slug or SKU already exists')

    logger.info("Product %s created with %d images", product.id, len(images))
    return _result(f'Product "{product.name}" created successfully', product)


def update_product(product_id, data, images=()):
    try:
        with transaction.atomic():
            product = get_product(product_id)
            for field, value in data.items():
                setattr(product, field, value)
            product.save()
            _replace_product_images(product, images)
    except IntegrityError:
        raise ActionError('A product with this slug or SKU already exists')

    return _result(f'Product "{product.name}" updated successfully', product)


def delete_product(product_id):
    product = get_product(product_id)
    product.delete()
    return {'message': f'Product "{product.name}" deleted successfully', 'result': {'id': product_id}}


# ==================== ORDERS ====================

ORDER_SORTS = {
    'publicId': 'public_id',
    'email': 'email',
    'status': 'status',
    'total': 'total',
    'placedAt': 'placed_at',
    'createdAt': 'created_at',
}


def normalize_order_items(items):
    """
    Merge lines that name the same product.

    Quantities are summed and the last unit price wins. Lines with a
    non-positive quantity or a negative price are dropped.
    """
    merged = OrderedDict()
    for item in items:
        product_id = int(item['product_id'])
        current = merged.get(product_id)
        merged[product_id] = {
            'product_id': product_id,
            'quantity': int(item['quantity']) + (current['quantity'] if current else 0),
            'unit_price': Decimal(item['unit_price']),
        }

    return [
        item for item in merged.values()
        if item['quantity'] > 0 and item['unit_price'] >= 0
    ]


def calculate_order_amounts(items, data):
    """Subtotal from the lines plus the discount, tax and shipping typed in by staff"""
    subtotal = sum((item['unit_price'] * item['quantity'] for item in items), ZERO)
    discount = data.get('discount_total') or ZERO
    tax = data.get('tax_total') or ZERO
    shipping = data.get('shipping_total') or ZERO
    total = max(ZERO, subtotal - discount + tax + shipping)

    return {
        'subtotal': quantize_money(subtotal),
        'discount_total': quantize_money(discount),
        'tax_total': quantize_money(tax),
        'shipping_total': quantize_money(shipping),
        'total': quantize_money(total),
    }


def _order_fields(data, totals):
    fields = {key: value for key, value in data.items() if key not in totals}
    for key in ('coupon_code', 'notes', 'shipping_line2', 'shipping_region', 'shipping_postal_code',
                'shipping_phone', 'shipping_method', 'shipping_carrier', 'tracking_number'):
        fields[key] = fields.get(key) or ''
    fields.update(totals)
    return fields


def _write_order_items(order, items):
    products = Product.objects.in_bulk([item['product_id'] for item in items])
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=products[item['product_id']],
            product_name=products[item['product_id']].name,
            quantity=item['quantity'],
            unit_price=quantize_money(item['unit_price']),
        )
        for item in items
    ])


def _prepare_order(data, items):
    items = normalize_order_items(items)
    if not items:
        raise ActionError('Add at least one product')
    _ensure_products_exist(item['product_id'] for item in items)
    return items, calculate_order_amounts(items, data)


def get_orders_paginated(search='', status=None, date_from=None, date_to=None,
                         page=1, per_page=10, sort=None):
    orders = Order.objects.select_related('user').annotate(
        items_count=Coalesce(Sum('items__quantity'), 0)
    )

    if search:
        orders = orders.filter(
            Q(public_id__icontains=search) | Q(email__icontains=search)
            | Q(shipping_full_name__icontains=search)
        )
    if status:
        orders = orders.filter(status=status)
    if date_from:
        orders = orders.filter(placed_at__date__gte=date_from)
    if date_to:
        orders = orders.filter(placed_at__date__lte=date_to)

    orders = orders.order_by(parse_sort(sort, ORDER_SORTS, '-placed_at'), '-id')
    return paginate(orders, page, per_page)


def get_order(order_id):
    return _get_or_raise(
        Order.objects.select_related('user').prefetch_related('items__product'), order_id, 'Order'
    )


def create_order(data, items):
    items, totals = _prepare_order(data, items)

    with transaction.atomic():
        fields = _order_fields(data, totals)
        fields['placed_at'] = fields.get('placed_at') or timezone.now()
        order = Order.objects.create(public_id=generate_public_id(), **fields)
        _write_order_items(order, items)

    logger.info("Order %s created from the dashboard", order.public_id)
    return _result(f'Order #{order.id} created successfully', order)


def update_order(order_id, data, items):
    items, totals = _prepare_order(data, items)

    with transaction.atomic():
        order = get_order(order_id)
        fields = _order_fields(data, totals)
        if not fields.get('placed_at'):
            fields['placed_at'] = order.placed_at or timezone.now()
        for field, value in fields.items():
            setattr(order, field, value)
        order.save()

        order.items.all().delete()
        _write_order_items(order, items)

    return _result(f'Order #{order.id} updated successfully', order)


def delete_order(order_id):
    order = get_order(order_id)
    order.delete()
    return {'message': f'Order #{order_id} deleted successfully', 'result': {'id': order_id}}


# ==================== CARTS ====================

CART_SORTS = {
    'status': 'status',
    'expiresAt': 'expires_at',
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
}


def dedupe_items(items):
    """Collapse repeated products into one line whose quantity is the sum"""
    merged = OrderedDict()
    for item in items:
        product_id = int(item['product_id'])
        quantity = int(item['quantity'])
        merged[product_id] = merged.get(product_id, 0) + quantity

    return [
        {'product_id': product_id, 'quantity': quantity}
        for product_id, quantity in merged.items()
        if quantity > 0
    ]


def _write_cart_items(cart, items):
    CartItem.objects.bulk_create([
        CartItem(cart=cart, product_id=item['product_id'], quantity=item['quantity'])
        for item in items
    ])


def get_carts_paginated(search='', status=None, page=1, per_page=10, sort=None):
    line_value = ExpressionWrapper(
        F('items__quantity') * F('items__product__price'),
        output_field=DecimalField(max_digits=12, decimal_places=2),
    )
    carts = Cart.objects.select_related('user').annotate(
        items_count=Count('items', distinct=True),
        quantity_sum=Coalesce(Sum('items__quantity'), 0),
        total_value=Coalesce(
            Sum(line_value), Value(ZERO),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        ),
    )

    if search:
        carts = carts.filter(Q(user__email__icontains=search) | Q(user__first_name__icontains=search))
    if status:
        carts = carts.filter(status=status)

    carts = carts.order_by(parse_sort(sort, CART_SORTS, '-updated_at'))
    return paginate(carts, page, per_page)


def get_cart(cart_id):
    return _get_or_raise(
        Cart.objects.select_related('user').prefetch_related('items__product'), cart_id, 'Cart'
    )


def create_cart(data, items):
    items = dedupe_items(items)
    _ensure_products_exist(item['product_id'] for item in items)

    with transaction.atomic():
        cart = Cart.objects.create(**data)
        _write_cart_items(cart, items)

    return _result(f'Cart #{cart.id} created successfully', cart)


def update_cart(cart_id, data, items):
    items = dedupe_items(items)
    _ensure_products_exist(item['product_id'] for item in items)

    with transaction.atomic():
        cart = get_cart(cart_id)
        for field, value in data.items():
            setattr(cart, field, value)
        cart.save()

        cart.items.all().delete()
        _write_cart_items(cart, items)

    return _result(f'Cart #{cart.id} updated successfully', cart)


def delete_cart(cart_id):
    cart = get_cart(cart_id)
    cart.delete()
    return {'message': f'Cart #{cart_id} deleted successfully', 'result': {'id': cart_id}}


# ==================== COUPONS ====================

COUPON_SORTS = {
    'code': 'code',
    'type': 'type',
    'value': 'value',
    'startsAt': 'starts_at',
    'endsAt': 'ends_at',
    'createdAt': 'created_at',
}


def get_coupons_paginated(search='', coupon_type=None, is_active=None, is_valid=None,
                          page=1, per_page=10, sort=None):
    coupons = Coupon.objects.annotate(redemptions_count=Count('redemptions'))

    if search:
        coupons = coupons.filter(code__icontains=search)
    if coupon_type:
        coupons = coupons.filter(type=coupon_type)
    if is_active is not None:
        coupons = coupons.filter(is_active=is_active)
    if is_valid is not None:
        now = timezone.now()
        in_window = (
            (Q(starts_at__isnull=True) | Q(starts_at__lte=now))
            & (Q(ends_at__isnull=True) | Q(ends_at__gte=now))
        )
        coupons = coupons.filter(in_window) if is_valid else coupons.exclude(in_window)

    coupons = coupons.order_by(parse_sort(sort, COUPON_SORTS, '-created_at'))
    return paginate(coupons, page, per_page)


def get_coupon(coupon_id):
    return _get_or_raise(
        Coupon.objects.prefetch_related('products', 'categories'), coupon_id, 'Coupon'
    )


def _split_coupon_data(data):
    data = dict(data)
    products = data.pop('products', [])
    categories = data.pop('categories', [])
    data['code'] = data['code'].strip()
    return data, products, categories


def create_coupon(data):
    data, products, categories = _split_coupon_data(data)
    if Coupon.objects.filter(code=data['code']).exists():
        raise ActionError(f'A coupon with code "{data["code"]}" already exists')

    with transaction.atomic():
        coupon = Coupon.objects.create(**data)
        coupon.products.set(products)
        coupon.categories.set(categories)

    logger.info("Coupon %s created", coupon.code)
    return _result(f'Coupon "{coupon.code}" created successfully', coupon)


def update_coupon(coupon_id, data):
    data, products, categories = _split_coupon_data(data)
    if Coupon.objects.filter(code=data['code']).exclude(pk=coupon_id).exists():
        raise ActionError(f'A coupon with code "{data["code"]}" already exists')

    with transaction.atomic():
        coupon = get_coupon(coupon_id)
        for field, value in data.items():
            setattr(coupon, field, value)
        coupon.save()
        coupon.products.set(products)
        coupon.categories.set(categories)

    return _result(f'Coupon "{coupon.code}" updated successfully', coupon)


def delete_coupon(coupon_id):
    coupon = get_coupon(coupon_id)
    coupon.delete()
    return {'message': f'Coupon "{coupon.code}" deleted successfully', 'result': {'id': coupon_id}}


# ==================== REVIEWS ====================

REVIEW_SORTS = {
    'rating': 'rating',
    'createdAt': 'created_at',
}


def get_reviews_paginated(search='', is_approved=None, product_id=None, page=1, per_page=10, sort=None):
    reviews = Review.objects.select_related('product', 'user')

    if search:
        reviews = reviews.filter(
            Q(title__icontains=search) | Q(body__icontains=search) | Q(product__name__icontains=search)
        )
    if is_approved is not None:
        reviews = reviews.filter(is_approved=is_approved)
    if product_id:
        reviews = reviews.filter(product_id=product_id)

    reviews = reviews.order_by(parse_sort(sort, REVIEW_SORTS, '-created_at'))
    return paginate(reviews, page, per_page)


def get_review(review_id):
    return _get_or_raise(Review.objects.select_related('product', 'user'), review_id, 'Review')


def create_review(data):
    """Review written from the dashboard; the author is optional"""
    review = Review.objects.create(
        product=data['product'],
        user=data.get('user'),
        rating=data['rating'],
        title=data.get('title') or '',
        body=data.get('body') or '',
        is_approved=data.get('is_approved', True),
    )
    logger.info("Review %s created for product %s", review.id, review.product_id)
    return _result('Review created successfully', review)


def update_review(review_id, data):
    review = get_review(review_id)
    for field, value in data.items():
        setattr(review, field, value)
    review.save()
    return _result('Review updated successfully', review)


def set_review_approval(review_id, is_approved):
    review = get_review(review_id)
    review.is_approved = is_approved
    review.save(update_fields=['is_approved', 'updated_at'])
    message = 'Review approved' if is_approved else 'Review hidden from the storefront'
    return _result(message, review)


def delete_review(review_id):
    review = get_review(review_id)
    review.delete()
    return {'message': 'Review deleted successfully', 'result': {'id': review_id}}


# ==================== USERS ====================

USER_SORTS = {
    'name': 'first_name',
    'email': 'email',
    'createdAt': 'created_at',
}


def get_users_paginated(search='', role=None, page=1, per_page=10, sort=None):
    users = User.objects.select_related('role')

    if search:
        users = users.filter(
            Q(email__icontains=search) | Q(first_name__icontains=search)
            | Q(last_name__icontains=search) | Q(phone__icontains=search)
        )
    if role:
        users = users.filter(role__name=role)

    users = users.order_by(parse_sort(sort, USER_SORTS, '-created_at'))
    return paginate(users, page, per_page)


def get_user(user_id):
    return _get_or_raise(User.objects.select_related('role'), user_id, 'User')


def create_user(data):
    data = dict(data)
    password = data.pop('password', None)
    if not password:
        raise ActionError('A password is required for new users')
    if User.objects.filter(email__iexact=data['email']).exists():
        raise ActionError('A user with this email already exists')

    user = User(username=generate_username(data['email']), **data)
    if user.role is None:
        user.role = Role.default()
    user.set_password(password)
    user.save()

    logger.info("User %s created from the dashboard", user.id)
    return _result(f'User "{user.email}" created successfully', user)


def update_user(user_id, data):
    data = dict(data)
    password = data.pop('password', None)
    user = get_user(user_id)

    if User.objects.filter(email__iexact=data.get('email', user.email)).exclude(pk=user.pk).exists():
        raise ActionError('A user with this email already exists')

    for field, value in data.items():
        setattr(user, field, value)
    if password:
        user.set_password(password)
    user.save()
    return _result(f'User "{user.email}" updated successfully', user)


def delete_user(user_id, acting_user=None):
    user = get_user(user_id)
    if acting_user is not None and acting_user.pk == user.pk:
        raise ActionError('You cannot delete your own account')
    user.delete()
    return {'message': f'User "{user.email}" deleted successfully', 'result': {'id': user_id}}


# ==================== STORE SETTINGS ====================

def get_settings():
    return get_store_settings()


def save_settings(data):
    return update_store_settings(data)


# ==================== DASHBOARD ====================

def get_dashboard_stats(low_stock_threshold=5):
    """Headline numbers for the dashboard landing page"""
    now = timezone.now()
    first_day_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_7_days = now - timedelta(days=7)

    paid_statuses = [Order.STATUS_PAID, Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_DELIVERED]
    paid_orders = Order.objects.filter(status__in=paid_statuses)

    revenue = paid_orders.aggregate(revenue_total=Sum('total'), revenue_average=Avg('total'))
    monthly_revenue = paid_orders.filter(
        placed_at__gte=first_day_of_month
    ).aggregate(revenue_total=Sum('total'))['revenue_total'] or ZERO
    week_revenue = paid_orders.filter(
        placed_at__gte=last_7_days
    ).aggregate(revenue_total=Sum('total'))['revenue_total'] or ZERO

    orders_by_status = {status: 0 for status, _ in Order.ORDER_STATUS}
    for row in Order.objects.values('status').annotate(count=Count('id')):
        orders_by_status[row['status']] = row['count']

    carts_by_status = {status: 0 for status, _ in Cart.STATUS_CHOICES}
    for row in Cart.objects.values('status').annotate(count=Count('id')):
        carts_by_status[row['status']] = row['count']

    return {
        'total_orders': sum(orders_by_status.values()),
        'orders_by_status': orders_by_status,
        'total_revenue': revenue['revenue_total'] or ZERO,
        'average_order_value': quantize_money(revenue['revenue_average'] or ZERO),
        'monthly_revenue': monthly_revenue,
        'week_revenue': week_revenue,
        'total_products': Product.objects.count(),
        'active_products': Product.objects.filter(status=Product.STATUS_ACTIVE).count(),
        'total_users': User.objects.count(),
        'carts_by_status': carts_by_status,
        'active_coupons': Coupon.objects.filter(is_active=True).count(),
        'pending_reviews': Review.objects.filter(is_approved=False).count(),
        'recent_orders': list(Order.objects.select_related('user').order_by('-created_at')[:5]),
        'low_stock_products': list(
            Product.objects.filter(stock__lte=low_stock_threshold).order_by('stock', 'name')[:10]
        ),
    }

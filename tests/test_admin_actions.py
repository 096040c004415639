from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from adminpanel import actions
from cart.models import Cart
from catalog.models import Category, ProductImage
from core.exceptions import ActionError
from orders.models import Order
from promotions.models import Coupon
from reviews.models import Review
from store.models import StoreSettings
from users.models import Role, User

pytestmark = pytest.mark.django_db


# ==================== CARTS ====================

def test_dedupe_items_sums_duplicates():
    items = [{"product_id": 1, "quantity": 2}, {"product_id": 1, "quantity": 3}, {"product_id": 2, "quantity": 1}]
    assert actions.dedupe_items(items) == [
        {"product_id": 1, "quantity": 5},
        {"product_id": 2, "quantity": 1},
    ]


def test_create_cart_stores_duplicates_as_one_line(make_product):
    product = make_product()

    result = actions.create_cart(
        {"user": None, "status": Cart.STATUS_ACTIVE, "expires_at": None},
        [{"product_id": product.id, "quantity": 2}, {"product_id": product.id, "quantity": 3}],
    )

    cart = Cart.objects.get(id=result["result"]["id"])
    [item] = cart.items.all()
    assert (item.product_id, item.quantity) == (product.id, 5)


def test_create_cart_with_missing_product_writes_nothing():
    with pytest.raises(ActionError, match="Product not found"):
        actions.create_cart({"status": Cart.STATUS_ACTIVE}, [{"product_id": 424242, "quantity": 1}])
    assert not Cart.objects.exists()


def test_update_cart_replaces_items(make_product, customer):
    first, second = make_product(), make_product()
    cart_id = actions.create_cart({"user": customer}, [{"product_id": first.id, "quantity": 1}])["result"]["id"]

    actions.update_cart(cart_id, {"status": Cart.STATUS_ABANDONED}, [{"product_id": second.id, "quantity": 4}])

    cart = Cart.objects.get(id=cart_id)
    assert cart.status == Cart.STATUS_ABANDONED
    assert list(cart.items.values_list("product_id", "quantity")) == [(second.id, 4)]


def test_cart_list_annotations(make_product):
    product = make_product(price="2.50")
    other = make_product(price="10.00")
    actions.create_cart({}, [{"product_id": product.id, "quantity": 4}, {"product_id": other.id, "quantity": 1}])
    actions.create_cart({"status": Cart.STATUS_CONVERTED}, [])

    page = actions.get_carts_paginated(status=Cart.STATUS_ACTIVE)

    [cart] = page["data"]
    assert cart.items_count == 2
    assert cart.quantity_sum == 5
    assert cart.total_value == Decimal("20.00")
    assert page["total"] == 1


# ==================== ORDERS ====================

ORDER_DATA = {
    "user": None,
    "email": "walkin@example.com",
    "status": Order.STATUS_PAID,
    "discount_total": Decimal("5.00"),
    "tax_total": Decimal("1.00"),
    "shipping_total": None,
    "coupon_code": "",
    "notes": "",
    "shipping_full_name": "Walk In",
    "shipping_line1": "Main St 1",
    "shipping_line2": "",
    "shipping_city": "Cusco",
    "shipping_region": "",
    "shipping_postal_code": "",
    "shipping_country_code": "PE",
    "shipping_phone": "",
    "shipping_method": "",
    "shipping_carrier": "",
    "tracking_number": "",
    "placed_at": None,
    "shipped_at": None,
    "delivered_at": None,
    "canceled_at": None,
}


def test_normalize_order_items():
    items = actions.normalize_order_items([
        {"product_id": 1, "quantity": 1, "unit_price": "10"},
        {"product_id": 1, "quantity": 2, "unit_price": "12"},
        {"product_id": 2, "quantity": 0, "unit_price": "5"},
    ])
    assert items == [{"product_id": 1, "quantity": 3, "unit_price": Decimal("12")}]


def test_create_order_computes_amounts(make_product):
    product = make_product(name="Lens cloth")

    result = actions.create_order(ORDER_DATA, [{"product_id": product.id, "quantity": 3, "unit_price": Decimal("4.00")}])

    order = Order.objects.get(id=result["result"]["id"])
    assert order.public_id.startswith("ORD-")
    assert order.subtotal == Decimal("12.00")
    assert order.total == Decimal("8.00")
    assert order.placed_at is not None
    assert order.items.get().product_name == "Lens cloth"


def test_create_order_needs_items():
    with pytest.raises(ActionError, match="Add at least one product"):
        actions.create_order(ORDER_DATA, [])


def test_update_order_replaces_lines(make_product):
    first, second = make_product(), make_product()
    order_id = actions.create_order(ORDER_DATA, [{"product_id": first.id, "quantity": 1, "unit_price": "10"}])["result"]["id"]

    actions.update_order(
        order_id,
        dict(ORDER_DATA, status=Order.STATUS_SHIPPED, discount_total=None, tax_total=None),
        [{"product_id": second.id, "quantity": 2, "unit_price": "7.50"}],
    )

    order = Order.objects.get(id=order_id)
    assert order.status == Order.STATUS_SHIPPED
    assert order.total == Decimal("15.00")
    assert list(order.items.values_list("product_id", flat=True)) == [second.id]


def test_order_list_filters_and_sorts(make_product):
    product = make_product()
    line = [{"product_id": product.id, "quantity": 1, "unit_price": "10"}]
    actions.create_order(dict(ORDER_DATA, email="a@example.com"), line)
    actions.create_order(dict(ORDER_DATA, email="b@example.com", status=Order.STATUS_CANCELED), line)

    paid = actions.get_orders_paginated(status=Order.STATUS_PAID)
    by_email = actions.get_orders_paginated(sort="email.asc")

    assert [o.email for o in paid["data"]] == ["a@example.com"]
    assert [o.email for o in by_email["data"]] == ["a@example.com", "b@example.com"]
    assert by_email["data"][0].items_count == 1


def test_missing_order():
    with pytest.raises(ActionError, match="Order not found"):
        actions.get_order(999)


# ==================== CATALOG ====================

def test_category_cannot_be_its_own_parent(category):
    with pytest.raises(ActionError, match="own parent"):
        actions.update_category(category.id, {"parent": category})


def test_category_with_products_cannot_be_deleted(make_product, category):
    make_product()
    with pytest.raises(ActionError):
        actions.delete_category(category.id)
    assert Category.objects.filter(id=category.id).exists()


def test_product_images_replaced_as_a_set(make_product):
    product = make_product()
    actions.update_product(product.id, {"name": "Renamed"}, [{"image_url": "https://cdn.example.com/a.jpg"}])
    actions.update_product(product.id, {}, [
        {"image_url": "https://cdn.example.com/b.jpg", "alt_text": "Front"},
        {"image_url": "https://cdn.example.com/c.jpg"},
    ])

    images = ProductImage.objects.filter(product=product).order_by("sort_order")
    assert [image.image_url for image in images] == [
        "https://cdn.example.com/b.jpg",
        "https://cdn.example.com/c.jpg",
    ]
    product.refresh_from_db()
    assert product.name == "Renamed"


def test_product_filters(make_product):
    make_product(price="5.00", stock=0)
    cheap = make_product(price="8.00", stock=3)
    make_product(price="50.00", stock=3)

    page = actions.get_products_paginated(max_price=Decimal("10"), in_stock=True)
    assert [p.id for p in page["data"]] == [cheap.id]


def test_pagination_shape(make_product):
    for _ in range(3):
        make_product()

    page = actions.get_products_paginated(page=2, per_page=2)

    assert page["count"] == 1
    assert page["page_count"] == 2
    assert page["total"] == 3
    assert page["next_page"] is None
    assert page["current_page"] == 2
    assert page["min_max"] == {"min": 3, "max": 3}


# ==================== COUPONS ====================

def test_coupon_code_trimmed_and_associations_set(make_product, category):
    product = make_product()

    result = actions.create_coupon({
        "code": "  SUMMER  ",
        "type": Coupon.TYPE_PERCENT,
        "value": Decimal("15"),
        "products": [product],
        "categories": [category],
    })

    coupon = Coupon.objects.get(id=result["result"]["id"])
    assert coupon.code == "SUMMER"
    assert list(coupon.products.all()) == [product]
    assert list(coupon.categories.all()) == [category]


def test_duplicate_coupon_code(make_coupon):
    make_coupon(code="DUP")
    with pytest.raises(ActionError, match="already exists"):
        actions.create_coupon({"code": "DUP", "type": Coupon.TYPE_FIXED, "value": Decimal("1")})


def test_coupon_validity_filter(make_coupon):
    now = timezone.now()
    current = make_coupon(code="NOW")
    make_coupon(code="OLD", ends_at=now - timedelta(days=1))
    make_coupon(code="SOON", starts_at=now + timedelta(days=1))

    valid = actions.get_coupons_paginated(is_valid=True)
    invalid = actions.get_coupons_paginated(is_valid=False, sort="code.asc")

    assert [c.id for c in valid["data"]] == [current.id]
    assert [c.code for c in invalid["data"]] == ["OLD", "SOON"]


# ==================== REVIEWS / USERS / SETTINGS ====================

def test_review_approval_toggle(make_product, customer):
    review = Review.objects.create(product=make_product(), user=customer, rating=Decimal("4.0"))

    actions.set_review_approval(review.id, False)

    review.refresh_from_db()
    assert review.is_approved is False
    assert actions.get_reviews_paginated(is_approved=False)["total"] == 1


def test_create_user_hashes_password():
    actions.create_user({"email": "new@example.com", "first_name": "Nia", "password": "long-enough-1"})

    user = User.objects.get(email="new@example.com")
    assert user.check_password("long-enough-1")
    assert user.role.name == Role.CUSTOMER


def test_update_user_keeps_password_when_blank(customer):
    actions.update_user(customer.id, {"first_name": "Renamed", "password": ""})

    customer.refresh_from_db()
    assert customer.first_name == "Renamed"
    assert customer.check_password("secret-pass-1")


def test_user_cannot_delete_themselves(staff_user):
    with pytest.raises(ActionError):
        actions.delete_user(staff_user.id, acting_user=staff_user)


def test_user_role_filter(customer, staff_user):
    page = actions.get_users_paginated(role=Role.ADMIN)
    assert [u.id for u in page["data"]] == [staff_user.id]


def test_store_settings_upsert():
    assert actions.get_settings().pk is None

    actions.save_settings({"company_name": "Optica Sol", "currency": "PEN"})
    actions.save_settings({"phone": "+51 1 555 0000"})

    settings_row = StoreSettings.objects.get()
    assert settings_row.company_name == "Optica Sol"
    assert settings_row.phone == "+51 1 555 0000"
    assert actions.get_settings().currency == "PEN"


def test_dashboard_stats(make_product, customer):
    product = make_product(stock=1)
    actions.create_order(ORDER_DATA, [{"product_id": product.id, "quantity": 2, "unit_price": "10"}])

    stats = actions.get_dashboard_stats(low_stock_threshold=5)

    assert stats["total_orders"] == 1
    assert stats["orders_by_status"][Order.STATUS_PAID] == 1
    assert stats["total_revenue"] == Decimal("16.00")
    assert stats["average_order_value"] == Decimal("16.00")
    assert stats["low_stock_products"] == [product]


def test_duplicate_category_slug(category):
    with pytest.raises(ActionError, match="already exists"):
        actions.create_category({"name": "Again", "slug": category.slug})
    assert Category.objects.count() == 1


def test_create_review_without_author(make_product):
    product = make_product()

    result = actions.create_review({
        "product": product,
        "user": None,
        "rating": Decimal("3.5"),
        "title": "Solid",
        "body": "",
        "is_approved": False,
    })

    review = Review.objects.get(id=result["result"]["id"])
    assert (review.product, review.user, review.rating, review.is_approved) == (product, None, Decimal("3.5"), False)


def test_create_logs_with_lazy_arguments(caplog):
    with caplog.at_level("INFO", logger="adminpanel.actions"):
        result = actions.create_category({"name": "Sport", "slug": "sport"})

    [record] = [r for r in caplog.records if r.name == "adminpanel.actions"]
    assert record.msg == "Category %s created"
    assert record.args == (result["result"]["id"],)

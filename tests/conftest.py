from decimal import Decimal

import pytest
from django.contrib.auth.models import AnonymousUser

from catalog.models import Category, Product
from promotions.models import Coupon
from users.models import Role, User


@pytest.fixture
def category(db):
    return Category.objects.create(name="Sunglasses", slug="sunglasses")


@pytest.fixture
def make_product(category):
    counter = {"n": 0}

    def _make(price="10.00", stock=10, status=Product.STATUS_ACTIVE, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        return Product.objects.create(
            name=kwargs.pop("name", f"Product {n}"),
            slug=kwargs.pop("slug", f"product-{n}"),
            category=kwargs.pop("category", category),
            price=Decimal(price),
            stock=stock,
            status=status,
            **kwargs,
        )

    return _make


@pytest.fixture
def customer(db):
    role = Role.default()
    return User.objects.create_user(
        username="customer",
        email="customer@example.com",
        password="secret-pass-1",
        first_name="Ana",
        role=role,
    )


@pytest.fixture
def staff_user(db):
    role, _ = Role.objects.get_or_create(name=Role.ADMIN)
    return User.objects.create_user(
        username="staff",
        email="staff@example.com",
        password="secret-pass-1",
        first_name="Sam",
        role=role,
    )


@pytest.fixture
def make_coupon(db):
    def _make(code="SAVE10", type=Coupon.TYPE_PERCENT, value="10", **kwargs):
        return Coupon.objects.create(code=code, type=type, value=Decimal(value), **kwargs)

    return _make


@pytest.fixture
def make_request(rf):
    """A bare request the cart and order actions can work with"""

    def _make(user=None, method="get", data=None):
        request = getattr(rf, method)("/", data or {})
        request.user = user or AnonymousUser()
        request.session = {}
        return request

    return _make

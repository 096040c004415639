from decimal import Decimal

import pytest
from django.urls import reverse

from catalog.models import Category, Product, ProductImage
from core.exceptions import ActionError
from reviews.models import Review
from reviews.views import create_review
from store.services import get_store_settings

pytestmark = pytest.mark.django_db


def _names(response):
    return [product.name for product in response.context["products"]]


def test_listing_hides_inactive_products(client, make_product):
    make_product(name="Aviator")
    make_product(name="Prototype", status=Product.STATUS_DRAFT)

    response = client.get(reverse("catalog:product_list"))

    assert _names(response) == ["Aviator"]


def test_listing_filters_and_sorts(client, make_product):
    make_product(name="Cheap", price="5.00")
    make_product(name="Mid", price="20.00", stock=0)
    make_product(name="Pricey", price="90.00")

    response = client.get(reverse("catalog:product_list"), {
        "max_price": "50", "availability": "in_stock", "sort": "price_desc",
    })
    assert _names(response) == ["Cheap"]

    response = client.get(reverse("catalog:product_list"), {"sort": "price_desc"})
    assert _names(response) == ["Pricey", "Mid", "Cheap"]


def test_category_detail_includes_subcategories(client, category, make_product):
    child = Category.objects.create(name="Kids", slug="kids", parent=category)
    other = Category.objects.create(name="Contacts", slug="contacts")
    make_product(name="Parent item")
    make_product(name="Child item", category=child)
    make_product(name="Other item", category=other)

    response = client.get(reverse("catalog:category_detail", args=[category.slug]), {"sort": "name_asc"})

    assert _names(response) == ["Child item", "Parent item"]


def test_product_detail_shows_approved_reviews(client, make_product, customer):
    product = make_product()
    Review.objects.create(product=product, user=customer, rating=Decimal("4.0"))
    Review.objects.create(product=product, rating=Decimal("1.0"), is_approved=False)

    response = client.get(reverse("catalog:product_detail", args=[product.slug]))

    assert response.context["review_count"] == 1
    assert response.context["average_rating"] == Decimal("4.0")


def test_draft_product_detail_is_404(client, make_product):
    product = make_product(status=Product.STATUS_DRAFT)
    assert client.get(reverse("catalog:product_detail", args=[product.slug])).status_code == 404


def test_search_needs_two_characters(client, make_product):
    make_product(name="Round frames")

    assert _names(client.get(reverse("catalog:search"), {"q": "r"})) == []
    assert _names(client.get(reverse("catalog:search"), {"q": "round"})) == ["Round frames"]


def test_search_dropdown(client, make_product):
    product = make_product(name="Cat eye", price="42.00")
    ProductImage.objects.create(product=product, image_url="https://cdn.example.com/cat.jpg")

    response = client.get(reverse("catalog:search_dropdown"), {"q": "cat"})

    assert response.json() == {"results": [{
        "id": product.id,
        "name": "Cat eye",
        "slug": product.slug,
        "price": "42.00",
        "image": "https://cdn.example.com/cat.jpg",
    }]}


# ==================== REVIEWS ====================

def test_one_review_per_customer(make_product, customer):
    product = make_product()
    create_review(customer, product, {"rating": Decimal("5")})

    with pytest.raises(ActionError, match="already reviewed"):
        create_review(customer, product, {"rating": Decimal("3")})


def test_reviews_closed_for_archived_products(make_product, customer):
    product = make_product(status=Product.STATUS_ARCHIVED)

    with pytest.raises(ActionError, match="closed"):
        create_review(customer, product, {"rating": Decimal("5")})


def test_submit_review(client, make_product, customer):
    product = make_product()
    client.force_login(customer)

    response = client.post(
        reverse("reviews:submit_review", args=[product.slug]),
        {"rating": "4.5", "title": "  Comfortable  "},
    )

    assert response.url == reverse("catalog:product_detail", args=[product.slug])
    review = Review.objects.get()
    assert (review.rating, review.title, review.is_approved) == (Decimal("4.5"), "Comfortable", True)


def test_submit_review_rejects_bad_rating(client, make_product, customer):
    product = make_product()
    client.force_login(customer)

    client.post(reverse("reviews:submit_review", args=[product.slug]), {"rating": "9"})

    assert not Review.objects.exists()


# ==================== STORE SETTINGS ====================

def test_store_settings_default_without_row(settings):
    settings.STORE_CURRENCY = "EUR"

    store_settings = get_store_settings()

    assert store_settings.pk is None
    assert store_settings.currency == "EUR"
    assert store_settings.company_name == "Storefront"

import pytest
from django.urls import reverse

pytestmark = pytest.mark.django_db


def test_account_requires_login(client):
    response = client.get(reverse("users:account"))

    assert response.status_code == 302
    assert response["Location"] == "/login/?next=%2Faccount%2F"


def test_dashboard_requires_login(client):
    response = client.get(reverse("adminpanel:dashboard"))
    assert response["Location"].startswith("/login/?next=")


def test_dashboard_turns_customers_away(client, customer):
    client.force_login(customer)
    response = client.get(reverse("adminpanel:dashboard"))
    assert response["Location"] == "/"


def test_staff_reach_dashboard(client, staff_user):
    client.force_login(staff_user)
    response = client.get(reverse("adminpanel:dashboard"))
    assert response.status_code == 200


def test_customer_reaches_account(client, customer):
    client.force_login(customer)
    assert client.get(reverse("users:account")).status_code == 200


def test_storefront_is_public(client):
    assert client.get(reverse("core:home")).status_code == 200
    assert client.get(reverse("catalog:product_list")).status_code == 200


def test_staff_login_lands_on_dashboard(client, staff_user):
    response = client.post(reverse("users:login"), {"email": "staff@example.com", "password": "secret-pass-1"})
    assert response["Location"] == reverse("adminpanel:dashboard")


def test_login_honours_safe_next(client, customer):
    response = client.post(
        reverse("users:login") + "?next=/account/orders/",
        {"email": "customer@example.com", "password": "secret-pass-1"},
    )
    assert response["Location"] == "/account/orders/"


def test_bad_credentials(client, customer):
    response = client.post(reverse("users:login"), {"email": "customer@example.com", "password": "wrong"})
    assert response.status_code == 200
    assert not response.wsgi_request.user.is_authenticated

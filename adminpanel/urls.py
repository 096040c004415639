from django.urls import path
from .import views

app_name = "adminpanel"

urlpatterns = [
    path("", views.dashboard, name="dashboard"),

    # Categories
    path("categories/", views.category_list, name="category_list"),
    path("categories/add/", views.category_add, name="category_add"),
    path("categories/edit/<int:category_id>/", views.category_edit, name="category_edit"),
    path("categories/delete/<int:category_id>/", views.category_delete, name="category_delete"),

    # Products
    path("products/", views.product_list, name="product_list"),
    path("products/add/", views.product_add, name="product_add"),
    path("products/edit/<int:product_id>/", views.product_edit, name="product_edit"),
    path("products/delete/<int:product_id>/", views.product_delete, name="product_delete"),

    # Orders
    path("orders/", views.order_list, name="order_list"),
    path("orders/add/", views.order_add, name="order_add"),
    path("orders/<int:order_id>/", views.order_detail, name="order_detail"),
    path("orders/edit/<int:order_id>/", views.order_edit, name="order_edit"),
    path("orders/delete/<int:order_id>/", views.order_delete, name="order_delete"),

    # Carts
    path("carts/", views.cart_list, name="cart_list"),
    path("carts/add/", views.cart_add, name="cart_add"),
    path("carts/edit/<int:cart_id>/", views.cart_edit, name="cart_edit"),
    path("carts/delete/<int:cart_id>/", views.cart_delete, name="cart_delete"),

    # Coupons
    path("coupons/", views.coupon_list, name="coupon_list"),
    path("coupons/add/", views.coupon_add, name="coupon_add"),
    path("coupons/edit/<int:coupon_id>/", views.coupon_edit, name="coupon_edit"),
    path("coupons/delete/<int:coupon_id>/", views.coupon_delete, name="coupon_delete"),

    # Reviews
    path("reviews/", views.review_list, name="review_list"),
    path("reviews/add/", views.review_add, name="review_add"),
    path("reviews/edit/<int:review_id>/", views.review_edit, name="review_edit"),
    path("reviews/approval/<int:review_id>/", views.review_toggle_approval, name="review_toggle_approval"),
    path("reviews/delete/<int:review_id>/", views.review_delete, name="review_delete"),

    # Users
    path("users/", views.user_list, name="user_list"),
    path("users/add/", views.user_add, name="user_add"),
    path("users/edit/<int:user_id>/", views.user_edit, name="user_edit"),
    path("users/delete/<int:user_id>/", views.user_delete, name="user_delete"),

    # Store settings
    path("settings/", views.store_settings, name="store_settings"),
]

# cart/urls.py
from django.urls import path
from . import views

app_name = 'cart'

urlpatterns = [
    # Cart View
    path('', views.cart_view, name='cart_view'),

    # Mutations
    path('add/', views.add_to_cart, name='add_to_cart'),
    path('update/', views.update_cart_item, name='update_cart_item'),
    path('remove/', views.remove_from_cart, name='remove_from_cart'),
    path('clear/', views.clear_cart, name='clear_cart'),

    # Guest cart migration
    path('migrate/', views.cart_migrate, name='cart_migrate'),

    # AJAX Endpoints
    path('api/', views.cart_state, name='cart_state'),
    path('api/count/', views.get_cart_count, name='get_cart_count'),
    path('api/migration/', views.migration_status, name='migration_status'),
]

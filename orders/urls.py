# orders/urls.py
from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    path('checkout/', views.checkout, name='checkout'),
    path('order/<str:public_id>/', views.order_detail, name='order_detail'),
    path('account/orders/', views.order_list, name='order_list'),
]

from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    path('login/', views.user_login, name='login'),
    path('register/', views.user_register, name='register'),
    path('logout/', views.user_logout, name='logout'),
    path('account/', views.account, name='account'),
    path('account/edit/', views.account_edit, name='account_edit'),
]

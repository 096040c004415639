from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    path('admin/', admin.site.urls),
    path('dashboard/', include('adminpanel.urls')),
    path('api/upload', include('uploads.urls')),
    path('cart/', include('cart.urls')),
    path('coupons/', include('promotions.urls')),
    path('reviews/', include('reviews.urls')),
    path('', include('orders.urls')),
    path('', include('users.urls')),
    path('', include('catalog.urls')),
    path('', include('core.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)

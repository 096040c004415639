from django.shortcuts import render
from django.http import Http404

from catalog.models import Category, Product
from store.services import get_store_settings

POLICY_FIELDS = {
    'privacy': ('Privacy Policy', 'privacy_policy_html'),
    'terms': ('Terms and Conditions', 'terms_html'),
    'shipping': ('Shipping Policy', 'shipping_policy_html'),
    'refund': ('Refund Policy', 'refund_policy_html'),
}


def home(request):
    featured_products = (
        Product.objects.filter(status=Product.STATUS_ACTIVE, images__isnull=False)
        .distinct()
        .prefetch_related('images')
        .order_by('-created_at')[:8]
    )
    categories = Category.objects.filter(is_active=True, parent__isnull=True)[:6]

    context = {
        'featured_products': featured_products,
        'categories': categories,
    }
    return render(request, 'home.html', context)


def about(request):
    return render(request, 'about.html')


def contact(request):
    return render(request, 'contact.html')


def policy(request, kind):
    if kind not in POLICY_FIELDS:
        raise Http404("Unknown policy")

    title, field = POLICY_FIELDS[kind]
    store_settings = get_store_settings()

    context = {
        'title': title,
        'content': getattr(store_settings, field) or '',
    }
    return render(request, 'policy.html', context)

# catalog/views.py
from django.shortcuts import render, get_object_or_404
from django.core.paginator import Paginator
from django.db.models import Avg, Count, Q
from django.http import JsonResponse
from decimal import Decimal, InvalidOperation

from .models import Category, Product

PRODUCTS_PER_PAGE = 12

SORT_OPTIONS = {
    'newest': '-created_at',
    'price_asc': 'price',
    'price_desc': '-price',
    'name_asc': 'name',
    'name_desc': '-name',
}


def _parse_decimal(value):
    try:
        return Decimal(value) if value not in (None, '') else None
    except InvalidOperation:
        return None


def active_products():
    return Product.objects.filter(status=Product.STATUS_ACTIVE).select_related('category').prefetch_related('images')


def filter_products(queryset, params):
    """Apply the storefront filters: category, price range and availability"""
    category_ids = [c for c in params.getlist('category') if c.isdigit()]
    if category_ids:
        queryset = queryset.filter(category_id__in=category_ids)

    min_price = _parse_decimal(params.get('min_price'))
    if min_price is not None:
        queryset = queryset.filter(price__gte=min_price)

    max_price = _parse_decimal(params.get('max_price'))
    if max_price is not None:
        queryset = queryset.filter(price__lte=max_price)

    availability = params.get('availability')
    if availability == 'in_stock':
        queryset = queryset.filter(stock__gt=0)
    elif availability == 'out_of_stock':
        queryset = queryset.filter(stock=0)

    sort = params.get('sort', 'newest')
    return queryset.order_by(SORT_OPTIONS.get(sort, '-created_at'))


# ==================== LISTINGS ====================

def product_list(request):
    """All active products with filters"""
    products = filter_products(active_products(), request.GET)
    page = Paginator(products, PRODUCTS_PER_PAGE).get_page(request.GET.get('page', 1))

    context = {
        'products': page,
        'categories': Category.objects.filter(is_active=True),
        'selected_categories': request.GET.getlist('category'),
        'min_price': request.GET.get('min_price', ''),
        'max_price': request.GET.get('max_price', ''),
        'availability': request.GET.get('availability', ''),
        'sort': request.GET.get('sort', 'newest'),
        'view': request.GET.get('view', 'grid'),
    }
    return render(request, 'product_list.html', context)


def category_list(request):
    categories = Category.objects.filter(is_active=True, parent__isnull=True).annotate(
        product_count=Count('products', filter=Q(products__status=Product.STATUS_ACTIVE))
    )
    return render(request, 'category_list.html', {'categories': categories})


def category_detail(request, slug):
    """Products of a category and its direct subcategories"""
    category = get_object_or_404(Category, slug=slug, is_active=True)
    subcategories = category.subcategories.filter(is_active=True)

    products = active_products().filter(
        Q(category=category) | Q(category__parent=category)
    )
    products = filter_products(products, request.GET)
    page = Paginator(products, PRODUCTS_PER_PAGE).get_page(request.GET.get('page', 1))

    context = {
        'category': category,
        'subcategories': subcategories,
        'products': page,
        'sort': request.GET.get('sort', 'newest'),
    }
    return render(request, 'category_detail.html', context)


# ==================== PRODUCT DETAIL ====================

def product_detail(request, slug):
    """Product detail view"""
    product = get_object_or_404(active_products(), slug=slug)

    reviews = product.reviews.filter(is_approved=True).select_related('user')
    rating = reviews.aggregate(average=Avg('rating'), count=Count('id'))

    has_reviewed = (
        request.user.is_authenticated
        and product.reviews.filter(user=request.user).exists()
    )

    related_products = active_products().filter(category=product.category).exclude(id=product.id)[:4]

    context = {
        'product': product,
        'images': product.images.all(),
        'reviews': reviews,
        'average_rating': rating['average'],
        'review_count': rating['count'],
        'has_reviewed': has_reviewed,
        'related_products': related_products,
    }
    return render(request, 'product_detail.html', context)


# ==================== SEARCH ====================

def _search_queryset(term):
    return active_products().filter(
        Q(name__icontains=term) | Q(description__icontains=term) | Q(sku__icontains=term)
    )


def search(request):
    """Paginated search page; terms shorter than 2 characters match nothing"""
    term = request.GET.get('q', '').strip()
    products = Product.objects.none()

    if len(term) >= 2:
        products = _search_queryset(term)
        sort = request.GET.get('sort', 'relevance')
        if sort in SORT_OPTIONS:
            products = products.order_by(SORT_OPTIONS[sort])

    page = Paginator(products, PRODUCTS_PER_PAGE).get_page(request.GET.get('page', 1))
    return render(request, 'search.html', {'query': term, 'products': page})


def search_dropdown(request):
    """Top matches for the header search box"""
    term = request.GET.get('q', '').strip()
    if len(term) < 2:
        return JsonResponse({'results': []})

    results = [
        {
            'id': product.id,
            'name': product.name,
            'slug': product.slug,
            'price': str(product.price),
            'image': product.primary_image,
        }
        for product in _search_queryset(term).order_by('-created_at')[:3]
    ]
    return JsonResponse({'results': results})

from catalog.models import Category
from store.services import get_store_settings


def global_context(request):
    """
    Injects common context variables into every template:
      - nav_categories : active top-level categories for the header
      - store_settings : company data, branding and currency
    """
    nav_categories = Category.objects.filter(is_active=True, parent__isnull=True).order_by('name')[:10]

    return {
        'nav_categories': nav_categories,
        'store_settings': get_store_settings(),
    }

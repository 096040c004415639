# cart/context_processors.py
from .actions import get_cart_item_count


def cart_processor(request):
    """Add cart info to template context; counts total quantity, not distinct rows"""
    return {
        'cart_count': get_cart_item_count(request),
    }

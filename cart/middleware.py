# cart/middleware.py
from django.conf import settings

from .actions import CART_COOKIE_SALT


class CartCookieMiddleware:
    """Writes the anonymous cart cookie changes queued by cart actions"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        queued = getattr(request, 'cart_cookie', None)
        if queued is None:
            return response

        action, cart_id = queued
        if action == 'set':
            response.set_signed_cookie(
                settings.CART_COOKIE_NAME,
                str(cart_id),
                salt=CART_COOKIE_SALT,
                max_age=settings.CART_COOKIE_AGE,
                httponly=True,
                secure=settings.SESSION_COOKIE_SECURE,
                samesite='Lax',
            )
        else:
            response.delete_cookie(settings.CART_COOKIE_NAME, samesite='Lax')

        return response

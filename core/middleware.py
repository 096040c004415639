# core/middleware.py
from urllib.parse import urlencode

from django.conf import settings
from django.shortcuts import redirect


class AccessControlMiddleware:
    """
    Route-level access control.

    Paths under the account and dashboard prefixes need a logged-in user;
    the dashboard also turns customers away.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path
        account = path.startswith(settings.ACCOUNT_URL_PREFIX)
        dashboard = path.startswith(settings.DASHBOARD_URL_PREFIX)

        if (account or dashboard) and not request.user.is_authenticated:
            return redirect(f"{settings.LOGIN_URL}?{urlencode({'next': path})}")

        if dashboard and request.user.is_customer:
            return redirect('/')

        return self.get_response(request)

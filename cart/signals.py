# cart/signals.py
import logging

from django.contrib.auth.signals import user_logged_in
from django.dispatch import receiver

from .actions import check_pending_cart_migration, get_anonymous_cart, migrate_anonymous_cart

logger = logging.getLogger(__name__)


@receiver(user_logged_in)
def adopt_guest_cart_on_login(sender, request, user, **kwargs):
    """
    Hand the guest cart to the user when nothing conflicts.

    When both carts hold items the choice is left to the user on the
    cart migration page.
    """
    if request is None or get_anonymous_cart(request) is None:
        return

    if check_pending_cart_migration(request)['has_pending_migration']:
        return

    result = migrate_anonymous_cart(request, should_merge=True)
    if not result['success']:
        logger.warning("Guest cart adoption failed for user %s: %s", user.pk, result['message'])

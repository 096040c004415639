# store/services.py
import logging

from django.conf import settings
from django.db import transaction

from .models import StoreSettings

logger = logging.getLogger(__name__)

DEFAULT_STORE_SETTINGS = {
    'company_name': 'Storefront',
    'primary_color': '#111827',
    'currency': 'USD',
    'timezone': 'America/Los_Angeles',
}


def get_store_settings():
    """The stored settings row, or an unsaved instance holding the defaults"""
    store_settings = StoreSettings.objects.order_by('id').first()
    if store_settings is not None:
        return store_settings

    defaults = dict(DEFAULT_STORE_SETTINGS, currency=getattr(settings, 'STORE_CURRENCY', 'USD'))
    return StoreSettings(**defaults)


def update_store_settings(data):
    """Create or update the single settings row"""
    with transaction.atomic():
        store_settings = StoreSettings.objects.select_for_update().order_by('id').first()
        if store_settings is None:
            store_settings = StoreSettings(**DEFAULT_STORE_SETTINGS)

        for field, value in data.items():
            setattr(store_settings, field, value)
        store_settings.save()

    logger.info("Store settings updated")
    return {'message': 'Store settings updated successfully', 'result': {'id': store_settings.id}}

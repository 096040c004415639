from django.contrib import admin
from unfold.admin import ModelAdmin
from .models import StoreSettings


@admin.register(StoreSettings)
class StoreSettingsAdmin(ModelAdmin):
    list_display = ("company_name", "email", "currency", "timezone", "updated_at")

    def has_add_permission(self, request):
        # Single row; the dashboard settings page creates it on first save
        return not StoreSettings.objects.exists()

from django.contrib import admin
from unfold.admin import ModelAdmin
from unfold.decorators import display
from .models import Coupon, CouponRedemption


@admin.register(Coupon)
class CouponAdmin(ModelAdmin):
    list_display = ("code", "type", "value", "is_active", "window_display", "ends_at")
    list_filter = ("type", "is_active")
    search_fields = ("code",)
    filter_horizontal = ("products", "categories")

    @display(description="In window", boolean=True)
    def window_display(self, obj):
        return obj.is_within_window()


@admin.register(CouponRedemption)
class CouponRedemptionAdmin(ModelAdmin):
    list_display = ("coupon", "user", "order", "redeemed_at")
    list_filter = ("coupon",)

from django.contrib import admin
from unfold.admin import ModelAdmin
from unfold.decorators import display
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Order)
class OrderAdmin(ModelAdmin):
    list_display = ("public_id", "email", "status_display", "total", "placed_at")
    list_filter = ("status",)
    search_fields = ("public_id", "email", "shipping_full_name")
    readonly_fields = ("public_id",)
    inlines = [OrderItemInline]

    @display(
        description="Status",
        label={
            Order.STATUS_CREATED: "info",
            Order.STATUS_PAID: "success",
            Order.STATUS_SHIPPED: "success",
            Order.STATUS_DELIVERED: "success",
            Order.STATUS_CANCELED: "danger",
            Order.STATUS_REFUNDED: "warning",
        },
    )
    def status_display(self, obj):
        return obj.status

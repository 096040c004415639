from django.contrib import admin
from unfold.admin import ModelAdmin
from .models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0


@admin.register(Cart)
class CartAdmin(ModelAdmin):
    list_display = ("id", "user", "status", "total_quantity", "updated_at")
    list_filter = ("status",)
    search_fields = ("user__email",)
    inlines = [CartItemInline]

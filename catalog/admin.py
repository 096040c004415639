from django.contrib import admin
from django.db.models import Count
from django.utils.html import format_html
from unfold.admin import ModelAdmin
from unfold.decorators import display
from .models import Category, Product, ProductImage


@admin.register(Category)
class CategoryAdmin(ModelAdmin):
    list_display = ("name", "parent", "products_count", "is_active")
    prepopulated_fields = {"slug": ("name",)}
    list_filter = ("is_active",)
    search_fields = ("name",)

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(_products_count=Count("products"))

    @display(description="Products", ordering="_products_count")
    def products_count(self, obj):
        return obj._products_count


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 1


@admin.register(Product)
class ProductAdmin(ModelAdmin):
    list_display = [
        "product_image_display",
        "name",
        "sku",
        "category",
        "price",
        "stock",
        "status_display",
    ]
    list_filter = ["category", "status"]
    search_fields = ["name", "sku"]
    prepopulated_fields = {"slug": ("name",)}
    inlines = [ProductImageInline]

    @display(description="Image", header=True)
    def product_image_display(self, obj):
        image = obj.primary_image
        if image:
            return format_html(
                '<img src="{}" style="width: 50px; height: 50px; object-fit: cover; border-radius: 8px;" />',
                image
            )
        return "-"

    @display(
        description="Status",
        label={
            Product.STATUS_ACTIVE: "success",
            Product.STATUS_DRAFT: "warning",
            Product.STATUS_ARCHIVED: "danger",
        },
    )
    def status_display(self, obj):
        return obj.status

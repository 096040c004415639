from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from unfold.admin import ModelAdmin
from .models import Role, User


@admin.register(Role)
class RoleAdmin(ModelAdmin):
    list_display = ("name", "description", "created_at")


@admin.register(User)
class UserAdmin(BaseUserAdmin, ModelAdmin):
    list_display = ("email", "first_name", "last_name", "role", "is_active")
    list_filter = ("role", "is_active")
    search_fields = ("email", "first_name", "last_name")
    ordering = ("-created_at",)
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Profile", {"fields": ("role", "second_last_name", "phone", "photo_url")}),
        ("Address", {"fields": ("address_line1", "address_line2", "city", "region")}),
    )

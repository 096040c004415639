# users/models.py
from django.db import models
from django.contrib.auth.models import AbstractUser


class Role(models.Model):
    """Access role; customers hold the lowest privilege"""
    ADMIN = 'admin'
    STAFF = 'staff'
    CUSTOMER = 'customer'

    name = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'roles'
        ordering = ['id']

    def __str__(self):
        return self.name

    @classmethod
    def default(cls):
        role, _ = cls.objects.get_or_create(
            name=cls.CUSTOMER,
            defaults={'description': 'Storefront customer'},
        )
        return role


class User(AbstractUser):
    """Extended user model"""
    email = models.EmailField(unique=True)
    role = models.ForeignKey(Role, on_delete=models.SET_NULL, null=True, blank=True, related_name='users')

    second_last_name = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    photo_url = models.URLField(max_length=500, blank=True)

    # Stored address, used by "ship to my address" at checkout
    address_line1 = models.CharField(max_length=200, blank=True)
    address_line2 = models.CharField(max_length=200, blank=True)
    city = models.CharField(max_length=100, blank=True)
    region = models.CharField(max_length=100, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email']),
        ]

    @property
    def full_name(self):
        parts = [self.first_name, self.last_name, self.second_last_name]
        return ' '.join(p.strip() for p in parts if p and p.strip()) or self.email

    @property
    def role_name(self):
        return self.role.name if self.role_id else Role.CUSTOMER

    @property
    def is_customer(self):
        if self.is_superuser:
            return False
        return self.role_name == Role.CUSTOMER

    @property
    def has_stored_address(self):
        return bool(self.first_name and self.address_line1 and self.city)

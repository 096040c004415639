# cart/models.py
from django.db import models
from django.db.models import Sum
from django.conf import settings
from catalog.models import Product


class Cart(models.Model):
    """Shopping cart, owned by a user or tracked by the anonymous cart cookie"""

    STATUS_ACTIVE = 'active'
    STATUS_CONVERTED = 'converted'
    STATUS_ABANDONED = 'abandoned'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_CONVERTED, 'Converted'),
        (STATUS_ABANDONED, 'Abandoned'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, null=True, blank=True, related_name='carts')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    expires_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_carts'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status']),
        ]

    def __str__(self):
        return f"Cart #{self.pk}"

    @property
    def total_quantity(self):
        return self.items.aggregate(total=Sum('quantity'))['total'] or 0


class CartItem(models.Model):
    """A product line inside a cart"""
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')

    quantity = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product'], name='cart_items_cart_product_unique'),
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name='cart_items_quantity_positive'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product.name}"

    @property
    def line_total(self):
        return self.product.price * self.quantity

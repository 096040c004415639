# reviews/models.py
from decimal import Decimal

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from catalog.models import Product


class Review(models.Model):
    """Product reviews"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reviews')

    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        validators=[MinValueValidator(Decimal('1')), MaxValueValidator(Decimal('5'))],
    )

    title = models.CharField(max_length=200, blank=True)
    body = models.TextField(blank=True)

    # Moderation; storefront reviews are approved on creation
    is_approved = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['product', 'is_approved', '-created_at']),
        ]
        constraints = [
            models.UniqueConstraint(fields=['product', 'user'], name='reviews_product_user_unique'),
        ]

    def __str__(self):
        return f"{self.product.name} ({self.rating})"

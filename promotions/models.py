# promotions/models.py
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from django.utils import timezone


class Coupon(models.Model):
    """Discount coupons"""
    TYPE_PERCENT = 'percent'
    TYPE_FIXED = 'fixed'

    TYPE_CHOICES = [
        (TYPE_PERCENT, 'Percentage'),
        (TYPE_FIXED, 'Fixed Amount'),
    ]

    code = models.CharField(max_length=100, unique=True, db_index=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    value = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])

    # Conditions
    min_subtotal = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Limitations
    max_uses = models.PositiveIntegerField(null=True, blank=True)  # Total redemptions
    max_uses_per_user = models.PositiveIntegerField(null=True, blank=True)

    # Validity
    starts_at = models.DateTimeField(null=True, blank=True)
    ends_at = models.DateTimeField(null=True, blank=True)

    # Eligibility; both empty means the whole cart qualifies
    products = models.ManyToManyField('catalog.Product', blank=True, related_name='coupons', db_table='coupon_products')
    categories = models.ManyToManyField('catalog.Category', blank=True, related_name='coupons', db_table='coupon_categories')

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'coupons'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['code']),
            models.Index(fields=['is_active', 'starts_at', 'ends_at']),
        ]

    def __str__(self):
        return self.code

    def is_within_window(self, now=None):
        now = now or timezone.now()
        if self.starts_at and self.starts_at > now:
            return False
        if self.ends_at and self.ends_at < now:
            return False
        return True


class CouponRedemption(models.Model):
    """One coupon applied to one order; redemption caps count these rows"""
    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name='redemptions')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='coupon_redemptions')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='coupon_redemptions')

    redeemed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'coupon_redemptions'
        ordering = ['-redeemed_at']
        indexes = [
            models.Index(fields=['coupon', 'user']),
        ]

    def __str__(self):
        return f"{self.coupon.code} @ {self.redeemed_at:%Y-%m-%d}"

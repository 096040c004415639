from django.db import models


class StoreSettings(models.Model):
    """Single-row store configuration: company data, branding and policies"""

    # Company information
    company_name = models.CharField(max_length=180)
    legal_name = models.CharField(max_length=180, blank=True)
    tax_id = models.CharField(max_length=50, blank=True)
    email = models.EmailField(max_length=180, blank=True)
    phone = models.CharField(max_length=32, blank=True)

    # Company address
    company_line1 = models.CharField(max_length=200, blank=True)
    company_line2 = models.CharField(max_length=200, blank=True)
    company_city = models.CharField(max_length=100, blank=True)
    company_region = models.CharField(max_length=100, blank=True)
    company_postal_code = models.CharField(max_length=20, blank=True)
    company_country_code = models.CharField(max_length=2, blank=True)

    # Branding
    primary_color = models.CharField(max_length=20, default='#111827')
    secondary_color = models.CharField(max_length=20, blank=True)
    accent_color = models.CharField(max_length=20, blank=True)
    font_family = models.CharField(max_length=100, blank=True)
    logo_url = models.URLField(max_length=500, blank=True)

    # Store
    currency = models.CharField(max_length=3, default='USD')
    timezone = models.CharField(max_length=60, default='America/Los_Angeles')

    # Policies
    privacy_policy_html = models.TextField(blank=True)
    terms_html = models.TextField(blank=True)
    shipping_policy_html = models.TextField(blank=True)
    refund_policy_html = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'store_settings'
        verbose_name = 'Store settings'
        verbose_name_plural = 'Store settings'

    def __str__(self):
        return self.company_name

# orders/forms.py
from django import forms
from django.core.exceptions import ValidationError


class CheckoutForm(forms.Form):
    email = forms.EmailField(max_length=180)
    use_stored_address = forms.BooleanField(required=False)

    # Shipping address
    full_name = forms.CharField(max_length=150, required=False)
    line1 = forms.CharField(max_length=200, required=False)
    line2 = forms.CharField(max_length=200, required=False)
    city = forms.CharField(max_length=100, required=False)
    region = forms.CharField(max_length=100, required=False)
    postal_code = forms.CharField(max_length=20, required=False)
    country_code = forms.CharField(max_length=2, required=False)
    phone = forms.CharField(max_length=32, required=False)

    coupon_code = forms.CharField(max_length=100, required=False)
    notes = forms.CharField(max_length=1000, required=False, widget=forms.Textarea)

    ADDRESS_FIELDS = ('full_name', 'line1', 'city', 'country_code')

    def clean_email(self):
        return self.cleaned_data['email'].lower().strip()

    def clean_country_code(self):
        code = (self.cleaned_data.get('country_code') or '').strip().upper()
        if code and len(code) != 2:
            raise ValidationError("Country code must have 2 characters")
        return code

    def clean_coupon_code(self):
        return (self.cleaned_data.get('coupon_code') or '').strip()

    def clean(self):
        cleaned = super().clean()

        if not cleaned.get('use_stored_address'):
            for field in self.ADDRESS_FIELDS:
                if not (cleaned.get(field) or '').strip():
                    self.add_error(field, "This field is required")

        return cleaned

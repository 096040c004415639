# reviews/forms.py
from decimal import Decimal

from django import forms


class ReviewForm(forms.Form):
    rating = forms.DecimalField(min_value=Decimal('1'), max_value=Decimal('5'), max_digits=2, decimal_places=1)
    title = forms.CharField(max_length=200, required=False)
    body = forms.CharField(max_length=5000, required=False, widget=forms.Textarea)

    def clean_title(self):
        return (self.cleaned_data.get('title') or '').strip()

    def clean_body(self):
        return (self.cleaned_data.get('body') or '').strip()

# adminpanel/forms.py
from django import forms
from django.utils.text import slugify

from cart.models import Cart
from catalog.models import Category, Product
from orders.models import Order
from promotions.models import Coupon
from reviews.models import Review
from store.models import StoreSettings
from users.models import Role, User


class CategoryForm(forms.ModelForm):
    slug = forms.SlugField(max_length=140, required=False)

    class Meta:
        model = Category
        fields = ['name', 'slug', 'description', 'parent', 'image_url', 'is_active']

    def clean_slug(self):
        return self.cleaned_data.get('slug') or slugify(self.data.get('name', ''))

    def clean_parent(self):
        parent = self.cleaned_data.get('parent')
        if parent is not None and self.instance.pk and parent.pk == self.instance.pk:
            raise forms.ValidationError('A category cannot be its own parent')
        return parent


class ProductForm(forms.ModelForm):
    slug = forms.SlugField(max_length=220, required=False)

    class Meta:
        model = Product
        fields = [
            'name', 'slug', 'sku', 'category', 'short_description', 'description',
            'price', 'compare_at_price', 'purchase_price', 'stock',
            'weight_grams', 'length_cm', 'width_cm', 'height_cm', 'status',
        ]

    def clean_slug(self):
        return self.cleaned_data.get('slug') or slugify(self.data.get('name', ''))

    def clean_sku(self):
        # Blank SKUs are stored as NULL so the unique index ignores them
        return self.cleaned_data.get('sku') or None


class OrderForm(forms.Form):
    user = forms.ModelChoiceField(queryset=User.objects.all(), required=False)
    email = forms.EmailField()
    status = forms.ChoiceField(choices=Order.ORDER_STATUS, initial=Order.STATUS_CREATED)

    discount_total = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    tax_total = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    shipping_total = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    coupon_code = forms.CharField(max_length=100, required=False)
    notes = forms.CharField(widget=forms.Textarea, required=False)

    shipping_full_name = forms.CharField(max_length=200)
    shipping_line1 = forms.CharField(max_length=200)
    shipping_line2 = forms.CharField(max_length=200, required=False)
    shipping_city = forms.CharField(max_length=100)
    shipping_region = forms.CharField(max_length=100, required=False)
    shipping_postal_code = forms.CharField(max_length=20, required=False)
    shipping_country_code = forms.CharField(min_length=2, max_length=2)
    shipping_phone = forms.CharField(max_length=32, required=False)

    shipping_method = forms.CharField(max_length=60, required=False)
    shipping_carrier = forms.CharField(max_length=60, required=False)
    tracking_number = forms.CharField(max_length=120, required=False)

    placed_at = forms.DateTimeField(required=False)
    shipped_at = forms.DateTimeField(required=False)
    delivered_at = forms.DateTimeField(required=False)
    canceled_at = forms.DateTimeField(required=False)

    def clean_shipping_country_code(self):
        return self.cleaned_data['shipping_country_code'].upper()


class CartForm(forms.Form):
    user = forms.ModelChoiceField(queryset=User.objects.all(), required=False)
    status = forms.ChoiceField(choices=Cart.STATUS_CHOICES, initial=Cart.STATUS_ACTIVE)
    expires_at = forms.DateTimeField(required=False)


class CouponForm(forms.ModelForm):
    value = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0.01)
    min_subtotal = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    max_uses = forms.IntegerField(min_value=1, required=False)
    max_uses_per_user = forms.IntegerField(min_value=1, required=False)

    class Meta:
        model = Coupon
        fields = [
            'code', 'type', 'value', 'min_subtotal', 'max_uses', 'max_uses_per_user',
            'starts_at', 'ends_at', 'is_active', 'products', 'categories',
        ]

    def clean_code(self):
        return self.cleaned_data['code'].strip()

    def clean(self):
        cleaned_data = super().clean()
        starts_at = cleaned_data.get('starts_at')
        ends_at = cleaned_data.get('ends_at')
        if starts_at and ends_at and ends_at <= starts_at:
            self.add_error('ends_at', 'The end date must be after the start date')

        value = cleaned_data.get('value')
        if cleaned_data.get('type') == Coupon.TYPE_PERCENT and value is not None and value > 100:
            self.add_error('value', 'A percentage discount cannot exceed 100')
        return cleaned_data


class ReviewForm(forms.ModelForm):
    class Meta:
        model = Review
        fields = ['product', 'user', 'rating', 'title', 'body', 'is_approved']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['product'].queryset = Product.objects.order_by('name')
        self.fields['user'].queryset = User.objects.order_by('email')
        self.fields['user'].required = False


class UserForm(forms.ModelForm):
    password = forms.CharField(widget=forms.PasswordInput, min_length=8, required=False)

    class Meta:
        model = User
        fields = [
            'first_name', 'last_name', 'second_last_name', 'email', 'phone', 'photo_url',
            'role', 'address_line1', 'address_line2', 'city', 'region', 'is_active',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['role'].queryset = Role.objects.order_by('name')
        # A new account needs a password; on edit a blank one keeps the old
        self.fields['password'].required = self.instance.pk is None


class StoreSettingsForm(forms.ModelForm):
    class Meta:
        model = StoreSettings
        exclude = ['created_at', 'updated_at']

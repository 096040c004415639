# users/forms.py
from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
import re

User = get_user_model()


class RegisterForm(forms.Form):
    first_name = forms.CharField(max_length=100, min_length=2, required=True)
    last_name = forms.CharField(max_length=100, min_length=2, required=True)
    second_last_name = forms.CharField(max_length=100, required=False)

    email = forms.EmailField(required=True)

    password = forms.CharField(widget=forms.PasswordInput, required=True)
    password_confirm = forms.CharField(widget=forms.PasswordInput, required=True)

    # ---------- Field validations ----------

    def clean_first_name(self):
        return self.cleaned_data["first_name"].strip()

    def clean_last_name(self):
        return self.cleaned_data["last_name"].strip()

    def clean_second_last_name(self):
        return (self.cleaned_data.get("second_last_name") or "").strip()

    def clean_email(self):
        email = self.cleaned_data["email"].lower().strip()

        if User.objects.filter(email__iexact=email).exists():
            raise ValidationError("This email is already registered")

        return email

    def clean_password(self):
        password = self.cleaned_data.get("password")

        validate_password(password)

        if not re.search(r"[A-Za-z]", password) or not re.search(r"[0-9]", password):
            raise ValidationError("Password must contain letters and numbers")

        return password

    def clean(self):
        cleaned = super().clean()

        password = cleaned.get("password")
        confirm = cleaned.get("password_confirm")

        if password and confirm and password != confirm:
            self.add_error("password_confirm", "Passwords do not match")

        return cleaned


class LoginForm(forms.Form):
    email = forms.EmailField(required=True)
    password = forms.CharField(widget=forms.PasswordInput, required=True)

    def clean_email(self):
        return self.cleaned_data["email"].lower().strip()


class AccountForm(forms.ModelForm):
    """Profile and stored address of the logged-in customer"""

    class Meta:
        model = User
        fields = [
            "first_name", "last_name", "second_last_name", "phone", "photo_url",
            "address_line1", "address_line2", "city", "region",
        ]

    def clean_phone(self):
        phone = (self.cleaned_data.get("phone") or "").strip()

        if phone and not re.match(r"^\+?[0-9 ]{6,20}$", phone):
            raise ValidationError("Enter a valid phone number")

        return phone


def generate_username(email):
    """Unique username derived from the email's local part"""
    base_username = email.split('@')[0][:140] or 'user'
    username = base_username
    counter = 1
    while User.objects.filter(username=username).exists():
        username = f"{base_username}{counter}"
        counter += 1
    return username

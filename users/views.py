from django.shortcuts import render, redirect
from django.contrib.auth import authenticate, login, logout, get_user_model
from django.contrib.auth.decorators import login_required
from django.contrib import messages
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST
import logging

from cart.actions import check_pending_cart_migration
from orders.models import Order
from .forms import AccountForm, LoginForm, RegisterForm, generate_username
from .models import Role

User = get_user_model()
logger = logging.getLogger(__name__)


# ==================== REDIRECT LOGIC ====================
def redirect_after_login(request, user):
    """Guest cart conflicts first, then `next`, then the role's home"""
    if check_pending_cart_migration(request)['has_pending_migration']:
        return redirect('cart:cart_migrate')

    next_url = request.POST.get('next') or request.GET.get('next')
    if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        return redirect(next_url)

    if not user.is_customer:
        return redirect('adminpanel:dashboard')
    return redirect('core:home')


# ==================== REGISTER ====================
def user_register(request):
    if request.user.is_authenticated:
        return redirect('core:home')

    form = RegisterForm(request.POST or None)

    if request.method == "POST":
        if form.is_valid():
            email = form.cleaned_data['email']

            user = User.objects.create_user(
                username=generate_username(email),
                email=email,
                password=form.cleaned_data['password'],
                first_name=form.cleaned_data['first_name'],
                last_name=form.cleaned_data['last_name'],
                second_last_name=form.cleaned_data['second_last_name'],
                role=Role.default(),
            )
            logger.info("User %s registered", user.pk)

            login(request, user)
            messages.success(request, "Account created successfully. Welcome!")
            return redirect_after_login(request, user)

        messages.error(request, "Please correct the errors below.")

    return render(request, "register.html", {"form": form})


# ==================== LOGIN ====================
def user_login(request):
    """User login"""
    if request.user.is_authenticated:
        return redirect('core:home')

    form = LoginForm(request.POST or None)

    if request.method == 'POST':
        user = None
        if form.is_valid():
            user_obj = User.objects.filter(email__iexact=form.cleaned_data['email']).first()
            if user_obj:
                user = authenticate(
                    request,
                    username=user_obj.username,
                    password=form.cleaned_data['password'],
                )

        if user:
            login(request, user)
            messages.success(request, f'Welcome back, {user.first_name or user.email}!')
            return redirect_after_login(request, user)

        messages.error(request, 'Invalid email or password')

    return render(request, 'login.html', {'form': form, 'next': request.GET.get('next', '')})


# ==================== LOGOUT ====================
@require_POST
def user_logout(request):
    """User logout"""
    logout(request)
    messages.success(request, 'You have been logged out successfully.')
    return redirect('users:login')


# ==================== ACCOUNT ====================
@login_required
def account(request):
    recent_orders = Order.objects.filter(user=request.user)[:5]
    return render(request, 'account.html', {'recent_orders': recent_orders})


@login_required
def account_edit(request):
    """Edit profile and stored address"""
    form = AccountForm(request.POST or None, instance=request.user)

    if request.method == 'POST':
        if form.is_valid():
            form.save()
            messages.success(request, 'Profile updated successfully!')
            return redirect('users:account')

        messages.error(request, 'Please correct the errors below.')

    return render(request, 'account_edit.html', {'form': form})

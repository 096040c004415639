# reviews/views.py
from django.shortcuts import redirect, get_object_or_404
from django.contrib.auth.decorators import login_required
from django.contrib import messages
from django.views.decorators.http import require_POST

from catalog.models import Product
from core.exceptions import ActionError
from .forms import ReviewForm
from .models import Review


def create_review(user, product, data):
    """One approved review per user and product"""
    if product.status != Product.STATUS_ACTIVE:
        raise ActionError('Reviews are closed for this product')

    if Review.objects.filter(product=product, user=user).exists():
        raise ActionError('You have already reviewed this product')

    return Review.objects.create(
        product=product,
        user=user,
        rating=data['rating'],
        title=data.get('title', ''),
        body=data.get('body', ''),
        is_approved=True,
    )


@login_required
@require_POST
def submit_review(request, product_slug):
    """Write a review from the product page"""
    product = get_object_or_404(Product, slug=product_slug)
    form = ReviewForm(request.POST)

    if not form.is_valid():
        messages.error(request, 'Please give a rating between 1 and 5.')
        return redirect('catalog:product_detail', slug=product.slug)

    try:
        create_review(request.user, product, form.cleaned_data)
        messages.success(request, 'Thank you for your review!')
    except ActionError as e:
        messages.error(request, str(e))

    return redirect('catalog:product_detail', slug=product.slug)

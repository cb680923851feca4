"""
Core tenant models.

A Business is the tenant. Every other row in the platform hangs off a
Business; the models here carry only what the subscription usage counters
and access checks read.
"""

from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    ROLE_CHOICES = (
        ('business_owner', 'Business Owner'),
        ('staff', 'Staff'),
        ('customer', 'Customer'),
    )

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='business_owner')
    phone = models.CharField(max_length=20, blank=True)

    def __str__(self):
        return self.username


class Business(models.Model):
    """A tenant of the platform."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100, unique=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='owned_businesses'
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        verbose_name_plural = 'Businesses'

    def __str__(self):
        return self.name

    def is_member(self, user) -> bool:
        """Owner, or an active non-deleted staff member"""
        if not user or not user.is_authenticated:
            return False
        if self.owner_id == user.id:
            return True
        return self.members.filter(user=user, is_active=True, is_deleted=False).exists()


class Store(models.Model):
    business = models.ForeignKey(Business, on_delete=models.CASCADE, related_name='stores')
    name = models.CharField(max_length=200)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.business.name} / {self.name}"


class BusinessUser(models.Model):
    """Staff membership of a user in a business."""

    ROLE_CHOICES = (
        ('admin', 'Administrator'),
        ('manager', 'Manager'),
        ('cashier', 'Cashier'),
    )

    business = models.ForeignKey(Business, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='business_memberships'
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='cashier')
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('business', 'user')

    def __str__(self):
        return f"{self.user} @ {self.business} ({self.role})"


class Product(models.Model):
    business = models.ForeignKey(Business, on_delete=models.CASCADE, related_name='products')
    name = models.CharField(max_length=200)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class Order(models.Model):
    PAYMENT_PLAN_CHOICES = (
        ('FULL', 'Full Payment'),
        ('PARTIAL', 'Partial Payment'),
        ('CREDIT', 'Credit'),
    )

    business = models.ForeignKey(Business, on_delete=models.CASCADE, related_name='orders')
    order_date = models.DateTimeField(default=timezone.now)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    payment_plan = models.CharField(max_length=10, choices=PAYMENT_PLAN_CHOICES, default='FULL')

    class Meta:
        ordering = ['-order_date']

    def __str__(self):
        return f"Order #{self.pk} ({self.business.name})"

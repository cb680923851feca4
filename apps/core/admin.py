"""
Admin configuration for core app
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import User, Business, Store, BusinessUser, Product, Order


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin configuration for User model"""

    list_display = ('username', 'email', 'first_name', 'last_name', 'phone',
                    'role', 'is_active', 'is_staff', 'last_login')
    list_filter = ('role', 'is_active', 'is_staff', 'is_superuser')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'phone')

    fieldsets = BaseUserAdmin.fieldsets + (
        (_('Kopqela'), {'fields': ('role', 'phone')}),
    )


class StoreInline(admin.TabularInline):
    model = Store
    extra = 0


class BusinessUserInline(admin.TabularInline):
    model = BusinessUser
    extra = 0
    raw_id_fields = ('user',)


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'owner', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'slug', 'owner__username', 'owner__email')
    prepopulated_fields = {'slug': ('name',)}
    raw_id_fields = ('owner',)
    readonly_fields = ('created_at', 'updated_at')
    inlines = [StoreInline, BusinessUserInline]


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ('name', 'business', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'business__name')


@admin.register(BusinessUser)
class BusinessUserAdmin(admin.ModelAdmin):
    list_display = ('user', 'business', 'role', 'is_active', 'is_deleted')
    list_filter = ('role', 'is_active', 'is_deleted')
    search_fields = ('user__username', 'business__name')


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'business', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('name',)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'business', 'order_date', 'total_amount', 'payment_plan')
    list_filter = ('payment_plan',)
    date_hierarchy = 'order_date'

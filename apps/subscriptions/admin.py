from django.contrib import admin

from .models import SubscriptionPlan, BusinessSubscription


@admin.register(SubscriptionPlan)
class SubscriptionPlanAdmin(admin.ModelAdmin):
    list_display = ['name', 'display_name', 'price_monthly', 'price_yearly', 'currency', 'is_active', 'sort_order']
    list_filter = ['is_active']
    search_fields = ['name', 'display_name']
    ordering = ['price_monthly']


@admin.register(BusinessSubscription)
class BusinessSubscriptionAdmin(admin.ModelAdmin):
    list_display = ['business', 'plan', 'status', 'billing_cycle', 'current_period_end', 'trial_ends_at']
    list_filter = ['status', 'billing_cycle', 'plan']
    search_fields = ['business__name', 'business__slug']
    raw_id_fields = ['business']
    date_hierarchy = 'created_at'
    readonly_fields = ['created_at', 'updated_at', 'cancelled_at']

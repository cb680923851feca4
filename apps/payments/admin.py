from django.contrib import admin

from .models import PaymentTransaction


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ['reference', 'business', 'plan', 'amount', 'currency', 'provider', 'status', 'created_at']
    list_filter = ['status', 'provider', 'plan']
    search_fields = ['reference', 'azampay_transaction_id', 'phone_number', 'business__name']
    raw_id_fields = ['business', 'subscription']
    date_hierarchy = 'created_at'
    readonly_fields = ['reference', 'azampay_transaction_id', 'metadata', 'completed_at', 'created_at', 'updated_at']

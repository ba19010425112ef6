from django.contrib import admin

from .models import DriverSubscription, MobileMoneyPayment, Transaction


@admin.register(MobileMoneyPayment)
class MobileMoneyPaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'payment_type', 'provider', 'amount', 'status', 'transaction_ref', 'created_at']
    list_filter = ['payment_type', 'provider', 'status']
    search_fields = ['user__email', 'phone_number', 'transaction_ref']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(DriverSubscription)
class DriverSubscriptionAdmin(admin.ModelAdmin):
    list_display = ['driver', 'amount', 'starts_at', 'expires_at', 'status']
    list_filter = ['status']
    search_fields = ['driver__email', 'driver__profile__full_name']
    date_hierarchy = 'expires_at'


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'driver', 'passenger', 'total_amount', 'driver_amount', 'commission_amount', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['driver__email', 'passenger__email']
    readonly_fields = ['created_at']
    date_hierarchy = 'created_at'

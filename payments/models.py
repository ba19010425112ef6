from django.db import models
from django.db.models import Q

from user.models import CustomUser


class MobileMoneyPayment(models.Model):
    PROVIDER_MTN = 'mtn'
    PROVIDER_AIRTEL = 'airtel'
    PROVIDER_CHOICES = [
        (PROVIDER_MTN, 'MTN Mobile Money'),
        (PROVIDER_AIRTEL, 'Airtel Money'),
    ]

    TYPE_BOOKING = 'booking'
    TYPE_SUBSCRIPTION = 'subscription'
    TYPE_CHOICES = [
        (TYPE_BOOKING, 'Booking'),
        (TYPE_SUBSCRIPTION, 'Subscription'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
    ]

    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='mobile_money_payments')
    payment_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    provider = models.CharField(max_length=10, choices=PROVIDER_CHOICES)
    phone_number = models.CharField(max_length=15)
    amount = models.PositiveIntegerField()
    booking = models.ForeignKey(
        'booking.Booking',
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='payments'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    transaction_ref = models.CharField(max_length=64, blank=True, null=True)
    failure_reason = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='momo_user_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(payment_type='subscription') | Q(booking__isnull=False),
                name='momo_booking_has_booking',
            ),
        ]

    def __str__(self):
        return f"{self.get_provider_display()} {self.amount} UGX ({self.status})"


class DriverSubscription(models.Model):
    STATUS_ACTIVE = 'active'
    STATUS_EXPIRED = 'expired'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_EXPIRED, 'Expired'),
    ]

    driver = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='subscriptions')
    payment = models.OneToOneField(
        MobileMoneyPayment,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='subscription'
    )
    amount = models.PositiveIntegerField()
    starts_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-expires_at']
        indexes = [
            models.Index(fields=['driver', 'status', 'expires_at'], name='sub_driver_status_idx'),
        ]

    def __str__(self):
        return f"Subscription {self.id} for driver {self.driver_id} until {self.expires_at:%Y-%m-%d}"


class Transaction(models.Model):
    """Fare split recorded when a booking is paid for."""
    STATUS_COMPLETED = 'completed'
    STATUS_REVERSED = 'reversed'
    STATUS_CHOICES = [
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_REVERSED, 'Reversed'),
    ]

    booking = models.ForeignKey('booking.Booking', on_delete=models.CASCADE, related_name='transactions')
    ride = models.ForeignKey('booking.Ride', on_delete=models.CASCADE, related_name='transactions')
    passenger = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='passenger_transactions')
    driver = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='driver_transactions')
    payment = models.ForeignKey(
        MobileMoneyPayment,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='transactions'
    )
    total_amount = models.PositiveIntegerField()
    driver_amount = models.PositiveIntegerField()
    commission_amount = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='txn_status_created_idx'),
            models.Index(fields=['driver', 'status'], name='txn_driver_status_idx'),
        ]

    def __str__(self):
        return f"Transaction {self.id}: {self.total_amount} UGX for booking {self.booking_id}"

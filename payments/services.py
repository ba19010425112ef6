"""
Mobile-money payments, fare splits and driver subscriptions.

Payments are simulated: ``initiate_payment`` records a pending attempt and
queues the sandbox settlement task, which calls ``finalize_payment`` after
``MOBILE_MONEY_SANDBOX_DELAY`` seconds.
"""

import logging
import math
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from booking import ledger
from booking.exceptions import BookingNotConfirmable, BookingNotFound
from booking.models import Booking
from .commission import FARE_PER_SEAT, SUBSCRIPTION_FEE, SUBSCRIPTION_PERIOD_DAYS, split_fare
from .exceptions import PaymentNotAllowed, PaymentNotFound
from .models import DriverSubscription, MobileMoneyPayment, Transaction

logger = logging.getLogger(__name__)

# Payment states that settle, or will settle, a booking
OPEN_PAYMENT_STATUSES = (MobileMoneyPayment.STATUS_PENDING, MobileMoneyPayment.STATUS_COMPLETED)


def sandbox_reference(now=None):
    now = now or timezone.now()
    return f"SIM-{int(now.timestamp() * 1000)}"


def initiate_payment(user, payment_type, provider, phone_number, booking_id=None):
    """Record a pending payment and schedule its sandbox settlement.

    A booking takes one payment at a time: while an earlier payment for it
    is pending or completed, a new one is refused.
    """
    with transaction.atomic():
        booking = None
        if payment_type == MobileMoneyPayment.TYPE_BOOKING:
            booking = (
                Booking.objects.select_for_update(of=('self',))
                .select_related('ride')
                .filter(pk=booking_id, passenger=user)
                .first()
            )
            if booking is None:
                raise BookingNotFound(f"booking not found: {booking_id} for user {user.pk}")
            if booking.status != Booking.STATUS_PENDING:
                raise PaymentNotAllowed(f"booking {booking.pk} is {booking.status}")
            open_payment = booking.payments.filter(status__in=OPEN_PAYMENT_STATUSES).first()
            if open_payment is not None:
                raise PaymentNotAllowed(
                    f"booking {booking.pk} already has {open_payment.status} payment {open_payment.pk}"
                )
            amount = booking.total_fare
        elif payment_type == MobileMoneyPayment.TYPE_SUBSCRIPTION:
            amount = SUBSCRIPTION_FEE
        else:
            raise PaymentNotAllowed(f"unknown payment type {payment_type!r}")

        payment = MobileMoneyPayment.objects.create(
            user=user,
            payment_type=payment_type,
            provider=provider,
            phone_number=phone_number,
            amount=amount,
            booking=booking,
        )
        logger.info("Payment %s initiated: %s %s UGX via %s", payment.pk, payment_type, amount, provider)

        from .tasks import complete_sandbox_payment

        delay = settings.MOBILE_MONEY_SANDBOX_DELAY
        transaction.on_commit(
            lambda: complete_sandbox_payment.apply_async(args=[payment.pk], countdown=delay)
        )
    return payment


def _fail(payment, reason):
    payment.status = MobileMoneyPayment.STATUS_FAILED
    payment.failure_reason = reason
    payment.save(update_fields=['status', 'failure_reason', 'updated_at'])
    logger.warning("Payment %s failed: %s", payment.pk, reason)
    return payment


def record_booking_transaction(booking, payment=None):
    driver_amount, commission = split_fare(booking.total_fare)
    return Transaction.objects.create(
        booking=booking,
        ride=booking.ride,
        passenger=booking.passenger,
        driver=booking.ride.driver,
        payment=payment,
        total_amount=booking.total_fare,
        driver_amount=driver_amount,
        commission_amount=commission,
    )


def finalize_payment(payment_id, transaction_ref=None):
    """Settle a pending payment and apply it. Settling twice changes nothing."""
    with transaction.atomic():
        try:
            payment = MobileMoneyPayment.objects.select_for_update().get(pk=payment_id)
        except MobileMoneyPayment.DoesNotExist:
            raise PaymentNotFound(f"payment {payment_id} does not exist")

        if payment.status != MobileMoneyPayment.STATUS_PENDING:
            return payment

        if payment.payment_type == MobileMoneyPayment.TYPE_BOOKING:
            booking = Booking.objects.select_for_update().filter(pk=payment.booking_id).first()
            if booking is None:
                return _fail(payment, 'Booking no longer exists')
            if booking.status != Booking.STATUS_PENDING:
                return _fail(payment, f'Booking is {booking.status}, not awaiting payment')
            try:
                booking = ledger.confirm(booking.pk)
            except (BookingNotConfirmable, BookingNotFound) as e:
                return _fail(payment, f'Booking could not be confirmed: {e.message}')
            record_booking_transaction(
                Booking.objects.select_related('ride').get(pk=booking.pk),
                payment=payment,
            )
        else:
            activate_subscription(payment.user, payment=payment)

        payment.status = MobileMoneyPayment.STATUS_COMPLETED
        payment.transaction_ref = transaction_ref or sandbox_reference()
        payment.save(update_fields=['status', 'transaction_ref', 'updated_at'])

    logger.info("Payment %s completed with reference %s", payment.pk, payment.transaction_ref)
    return payment


def current_subscription(driver, now=None):
    """The driver's active subscription that ends last, if any."""
    now = now or timezone.now()
    return DriverSubscription.objects.filter(
        driver=driver,
        status=DriverSubscription.STATUS_ACTIVE,
        expires_at__gt=now,
    ).order_by('-expires_at').first()


def activate_subscription(driver, payment=None, now=None):
    """Add one subscription period; renewals start when the current period ends."""
    now = now or timezone.now()
    latest = current_subscription(driver, now=now)
    starts_at = latest.expires_at if latest else now

    subscription = DriverSubscription.objects.create(
        driver=driver,
        payment=payment,
        amount=SUBSCRIPTION_FEE,
        starts_at=starts_at,
        expires_at=starts_at + timedelta(days=SUBSCRIPTION_PERIOD_DAYS),
    )
    logger.info("Driver %s subscribed until %s", driver.pk, subscription.expires_at.isoformat())
    return subscription


def driver_has_active_subscription(driver, now=None):
    now = now or timezone.now()
    return DriverSubscription.objects.filter(
        driver=driver,
        status=DriverSubscription.STATUS_ACTIVE,
        starts_at__lte=now,
        expires_at__gt=now,
    ).exists()


def subscription_status(driver, now=None):
    now = now or timezone.now()
    latest = current_subscription(driver, now=now)
    active = driver_has_active_subscription(driver, now=now)

    days_remaining = 0
    if latest is not None:
        days_remaining = math.ceil((latest.expires_at - now).total_seconds() / 86400)

    driver_share, _ = split_fare(FARE_PER_SEAT)
    return {
        'active': active,
        'expires_at': latest.expires_at.isoformat() if latest else None,
        'days_remaining': days_remaining,
        'fee': SUBSCRIPTION_FEE,
        'period_days': SUBSCRIPTION_PERIOD_DAYS,
        'driver_earning_per_seat': driver_share,
    }


def expire_subscriptions(now=None):
    """Mark lapsed subscriptions as expired and return how many changed."""
    now = now or timezone.now()
    return DriverSubscription.objects.filter(
        status=DriverSubscription.STATUS_ACTIVE,
        expires_at__lte=now,
    ).update(status=DriverSubscription.STATUS_EXPIRED)

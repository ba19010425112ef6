"""Platform-wide figures for the admin dashboard."""

from datetime import timedelta

from django.db.models import Count, Q, Sum
from django.utils import timezone

from booking.models import Booking, Ride
from user.models import Profile
from .models import DriverSubscription, MobileMoneyPayment, Transaction

RECENT_LIMIT = 20


def get_platform_stats(now=None):
    now = now or timezone.now()
    completed = Transaction.objects.filter(status=Transaction.STATUS_COMPLETED)

    commission = completed.aggregate(
        total=Sum('commission_amount'),
        weekly=Sum('commission_amount', filter=Q(created_at__gte=now - timedelta(days=7))),
        daily=Sum('commission_amount', filter=Q(created_at__gte=now - timedelta(hours=24))),
    )

    drivers = Profile.objects.filter(role=Profile.ROLE_DRIVER).aggregate(
        total=Count('id', distinct=True),
        active=Count(
            'id',
            filter=Q(
                user__subscriptions__status=DriverSubscription.STATUS_ACTIVE,
                user__subscriptions__starts_at__lte=now,
                user__subscriptions__expires_at__gt=now,
            ),
            distinct=True,
        ),
    )

    subscription_revenue = MobileMoneyPayment.objects.filter(
        payment_type=MobileMoneyPayment.TYPE_SUBSCRIPTION,
        status=MobileMoneyPayment.STATUS_COMPLETED,
    ).aggregate(total=Sum('amount'))['total'] or 0

    return {
        'total_users': Profile.objects.count(),
        'total_rides': Ride.objects.count(),
        'total_bookings': Booking.objects.count(),
        'total_commission': commission['total'] or 0,
        'weekly_commission': commission['weekly'] or 0,
        'daily_commission': commission['daily'] or 0,
        'active_drivers': drivers['active'],
        'inactive_drivers': drivers['total'] - drivers['active'],
        'total_subscription_revenue': subscription_revenue,
    }


def _name(user):
    profile = getattr(user, 'profile', None)
    return profile.full_name if profile else user.email


def recent_transactions(limit=RECENT_LIMIT):
    transactions = Transaction.objects.select_related(
        'ride', 'driver__profile', 'passenger__profile'
    ).order_by('-created_at')[:limit]
    return [
        {
            'id': t.id,
            'booking_id': t.booking_id,
            'ride_id': t.ride_id,
            'route': f"{t.ride.pickup_location} to {t.ride.destination}",
            'driver_name': _name(t.driver),
            'passenger_name': _name(t.passenger),
            'total_amount': t.total_amount,
            'driver_amount': t.driver_amount,
            'commission_amount': t.commission_amount,
            'status': t.status,
            'created_at': t.created_at.isoformat(),
        }
        for t in transactions
    ]


def recent_rides(limit=RECENT_LIMIT):
    rides = Ride.objects.select_related('driver__profile').order_by('-created_at')[:limit]
    return [
        {
            'id': r.id,
            'driver_name': _name(r.driver),
            'pickup_location': r.pickup_location,
            'destination': r.destination,
            'departure_time': r.departure_time.isoformat(),
            'total_seats': r.total_seats,
            'available_seats': r.available_seats,
            'status': r.status,
            'created_at': r.created_at.isoformat(),
        }
        for r in rides
    ]

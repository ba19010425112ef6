from django.db.models import Count, Q, Sum
from django.utils import timezone

from payments.models import Transaction
from user.utils import driver_summary
from .models import Booking, Ride


def _coord(value):
    return float(value) if value is not None else None


def ride_payload(ride, include_driver=True):
    payload = {
        'id': ride.id,
        'driver_id': ride.driver_id,
        'pickup_location': ride.pickup_location,
        'pickup_latitude': _coord(ride.pickup_latitude),
        'pickup_longitude': _coord(ride.pickup_longitude),
        'destination': ride.destination,
        'destination_latitude': _coord(ride.destination_latitude),
        'destination_longitude': _coord(ride.destination_longitude),
        'departure_time': ride.departure_time.isoformat(),
        'total_seats': ride.total_seats,
        'available_seats': ride.available_seats,
        'fare_per_seat': ride.fare_per_seat,
        'status': ride.status,
        'notes': ride.notes,
        'estimated_distance_km': _coord(ride.estimated_distance_km),
        'estimated_duration_seconds': ride.estimated_duration_seconds,
        'created_at': ride.created_at.isoformat() if ride.created_at else None,
    }
    if include_driver:
        payload['driver'] = driver_summary(ride.driver)
    return payload


def booking_payload(booking, include_ride=True):
    payload = {
        'id': booking.id,
        'ride_id': booking.ride_id,
        'passenger_id': booking.passenger_id,
        'seats_booked': booking.seats_booked,
        'status': booking.status,
        'total_fare': booking.total_fare,
        'created_at': booking.created_at.isoformat() if booking.created_at else None,
    }
    if include_ride:
        payload['ride'] = ride_payload(booking.ride)
    return payload


def passenger_payload(booking):
    profile = getattr(booking.passenger, 'profile', None)
    return {
        'booking_id': booking.id,
        'passenger_id': booking.passenger_id,
        'full_name': profile.full_name if profile else None,
        'phone_number': profile.phone_number if profile else None,
        'seats_booked': booking.seats_booked,
        'status': booking.status,
    }


def rides_with_driver(queryset=None):
    if queryset is None:
        queryset = Ride.objects.all()
    return queryset.select_related('driver', 'driver__profile', 'driver__driver_details')


def search_rides(pickup='', destination='', now=None):
    """Open rides that have not left yet, soonest first."""
    now = now or timezone.now()
    rides = Ride.objects.filter(status=Ride.STATUS_AVAILABLE, departure_time__gte=now)
    if pickup:
        rides = rides.filter(pickup_location__icontains=pickup)
    if destination:
        rides = rides.filter(destination__icontains=destination)
    return rides_with_driver(rides).order_by('departure_time')


def driver_home_stats(driver, now=None):
    now = now or timezone.now()
    rides = Ride.objects.filter(driver=driver)

    counts = rides.aggregate(
        total_rides=Count('id'),
        active_rides=Count('id', filter=Q(status__in=Ride.OPEN_STATUSES)),
    )
    confirmed = Booking.objects.filter(
        ride__driver=driver,
        status=Booking.STATUS_CONFIRMED,
    ).aggregate(passengers=Sum('seats_booked'))['passengers'] or 0
    earnings = Transaction.objects.filter(
        driver=driver,
        status=Transaction.STATUS_COMPLETED,
    ).aggregate(total=Sum('driver_amount'))['total'] or 0

    upcoming = rides_with_driver(
        rides.filter(status__in=Ride.OPEN_STATUSES, departure_time__gte=now)
    ).order_by('departure_time')[:3]

    return {
        'total_rides': counts['total_rides'],
        'active_rides': counts['active_rides'],
        'confirmed_passengers': confirmed,
        'total_earnings': earnings,
        'upcoming_rides': [ride_payload(ride, include_driver=False) for ride in upcoming],
    }

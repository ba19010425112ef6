"""
Seat reservation ledger.

Every ride keeps ``available_seats + sum(seats_booked of bookings that are
not cancelled) == total_seats``. All seat movements go through this
module: each runs in a single transaction, locks the ride row first and
changes the seat count with a conditional UPDATE, so a reservation made
from a stale read cannot oversubscribe a ride.
"""

import logging

from django.db import transaction
from django.db.models import Case, F, IntegerField, Q, Sum, Value, When
from django.db.models.functions import Coalesce
from django.utils import timezone

from payments.models import Transaction

from .exceptions import (
    BookingNotCancellable,
    BookingNotConfirmable,
    BookingNotFound,
    InsufficientCapacity,
    InvalidSeatCount,
    RideNotFound,
    RideUnavailable,
)
from .models import Booking, Ride

logger = logging.getLogger(__name__)


def _lock_ride(ride_id):
    try:
        return Ride.objects.select_for_update().get(pk=ride_id)
    except Ride.DoesNotExist:
        raise RideNotFound(f"ride not found: {ride_id}")


def _seat_count(value):
    try:
        seats = int(value)
    except (TypeError, ValueError):
        raise InvalidSeatCount(f"invalid seat count {value!r}")
    if seats < 1:
        raise InvalidSeatCount(f"invalid seat count {seats}")
    return seats


def reserve(ride_id, passenger, seat_count):
    """Take ``seat_count`` seats on a ride for ``passenger``.

    Returns the new pending booking. The seat decrement and the booking
    insert commit together; the ride turns ``full`` when its last seat
    goes.
    """
    with transaction.atomic():
        ride = _lock_ride(ride_id)
        seats = _seat_count(seat_count)

        if ride.status not in Ride.OPEN_STATUSES:
            raise RideUnavailable(f"ride is not available: ride {ride.pk} is {ride.status}")
        if ride.departure_time <= timezone.now():
            raise RideUnavailable(f"ride is not available: ride {ride.pk} has departed")
        if ride.driver_id == passenger.pk:
            raise RideUnavailable(f"ride is not available: user {passenger.pk} drives ride {ride.pk}")
        if ride.available_seats < seats:
            raise InsufficientCapacity(
                f"not enough seats on ride {ride.pk}: {ride.available_seats} left, {seats} requested"
            )

        # SET expressions see the pre-update row, so the CASE tests the old count
        updated = Ride.objects.filter(
            pk=ride.pk,
            status=Ride.STATUS_AVAILABLE,
            available_seats__gte=seats,
        ).update(
            available_seats=F('available_seats') - seats,
            status=Case(
                When(available_seats=seats, then=Value(Ride.STATUS_FULL)),
                default=F('status'),
            ),
            updated_at=timezone.now(),
        )
        if not updated:
            raise InsufficientCapacity(f"not enough seats on ride {ride.pk}: lost race for {seats}")

        booking = Booking.objects.create(
            ride=ride,
            passenger=passenger,
            seats_booked=seats,
            status=Booking.STATUS_PENDING,
        )

    logger.info("Reserved %s seat(s) on ride %s for user %s (booking %s)",
                seats, ride.pk, passenger.pk, booking.pk)
    return booking


def _release_locked(ride, booking):
    """Cancel ``booking`` and return its seats. Both rows must already be locked."""
    now = timezone.now()
    Booking.objects.filter(pk=booking.pk).update(status=Booking.STATUS_CANCELLED, updated_at=now)
    Ride.objects.filter(pk=ride.pk).update(
        available_seats=F('available_seats') + booking.seats_booked,
        status=Case(
            When(status=Ride.STATUS_FULL, then=Value(Ride.STATUS_AVAILABLE)),
            default=F('status'),
        ),
        updated_at=now,
    )
    reversed_count = Transaction.objects.filter(
        booking=booking,
        status=Transaction.STATUS_COMPLETED,
    ).update(status=Transaction.STATUS_REVERSED)

    booking.status = Booking.STATUS_CANCELLED
    logger.info("Released %s seat(s) on ride %s from booking %s",
                booking.seats_booked, ride.pk, booking.pk)
    if reversed_count:
        logger.info("Reversed %s transaction(s) for booking %s", reversed_count, booking.pk)


def release(booking_id, actor=None):
    """Cancel a booking and give its seats back to the ride.

    Cancelling an already cancelled booking changes nothing. When ``actor``
    is given it must be the passenger or the ride's driver.
    """
    ride_id = Booking.objects.filter(pk=booking_id).values_list('ride_id', flat=True).first()
    if ride_id is None:
        raise BookingNotFound(f"booking not found: {booking_id}")

    with transaction.atomic():
        # Ride before booking, the same order cancel_ride and complete_ride use
        ride = _lock_ride(ride_id)
        booking = Booking.objects.select_for_update().get(pk=booking_id)

        if actor is not None and actor.pk not in (booking.passenger_id, ride.driver_id):
            raise BookingNotFound(f"booking not found: {booking_id} for user {actor.pk}")
        if booking.status == Booking.STATUS_CANCELLED:
            return booking
        if booking.status == Booking.STATUS_COMPLETED:
            raise BookingNotCancellable(f"booking {booking.pk} is completed")

        _release_locked(ride, booking)

    return booking


def confirm(booking_id):
    """Mark a pending booking as paid."""
    with transaction.atomic():
        try:
            booking = Booking.objects.select_for_update().get(pk=booking_id)
        except Booking.DoesNotExist:
            raise BookingNotFound(f"booking not found: {booking_id}")

        if booking.status == Booking.STATUS_CONFIRMED:
            return booking
        if booking.status != Booking.STATUS_PENDING:
            raise BookingNotConfirmable(f"booking {booking.pk} is {booking.status}")

        booking.status = Booking.STATUS_CONFIRMED
        booking.save(update_fields=['status', 'updated_at'])

    logger.info("Confirmed booking %s", booking.pk)
    return booking


def _lock_driver_ride(ride_id, driver):
    ride = _lock_ride(ride_id)
    if ride.driver_id != driver.pk:
        raise RideNotFound(f"ride not found: {ride_id} for driver {driver.pk}")
    return ride


def cancel_ride(ride_id, driver):
    """Cancel a ride and every live booking on it."""
    with transaction.atomic():
        ride = _lock_driver_ride(ride_id, driver)
        if ride.status == Ride.STATUS_CANCELLED:
            return ride
        if ride.status == Ride.STATUS_COMPLETED:
            raise RideUnavailable(f"ride is not available: ride {ride.pk} is completed")

        live = ride.bookings.select_for_update().filter(status__in=Booking.ACTIVE_STATUSES)
        for booking in live:
            _release_locked(ride, booking)

        Ride.objects.filter(pk=ride.pk).update(status=Ride.STATUS_CANCELLED, updated_at=timezone.now())
        ride.refresh_from_db()

    logger.info("Driver %s cancelled ride %s", driver.pk, ride.pk)
    return ride


def complete_ride(ride_id, driver):
    """Finish a ride: paid bookings complete, unpaid ones give their seats back."""
    with transaction.atomic():
        ride = _lock_driver_ride(ride_id, driver)
        if ride.status == Ride.STATUS_COMPLETED:
            return ride
        if ride.status == Ride.STATUS_CANCELLED:
            raise RideUnavailable(f"ride is not available: ride {ride.pk} is cancelled")

        pending = ride.bookings.select_for_update().filter(status=Booking.STATUS_PENDING)
        for booking in pending:
            _release_locked(ride, booking)

        now = timezone.now()
        completed = ride.bookings.filter(status=Booking.STATUS_CONFIRMED).update(
            status=Booking.STATUS_COMPLETED,
            updated_at=now,
        )
        Ride.objects.filter(pk=ride.pk).update(status=Ride.STATUS_COMPLETED, updated_at=now)
        ride.refresh_from_db()

    logger.info("Driver %s completed ride %s with %s paid booking(s)", driver.pk, ride.pk, completed)
    return ride


def with_held_seats(queryset=None):
    """Annotate rides with ``seats_held``: seats claimed by non-cancelled bookings."""
    if queryset is None:
        queryset = Ride.objects.all()
    return queryset.annotate(
        seats_held=Coalesce(
            Sum('bookings__seats_booked', filter=Q(bookings__status__in=Booking.SEAT_HOLDING_STATUSES)),
            0,
            output_field=IntegerField(),
        )
    )


def _discrepancy(ride, seats_held):
    if ride.available_seats + seats_held == ride.total_seats:
        return None
    return {
        'ride_id': ride.pk,
        'total_seats': ride.total_seats,
        'available_seats': ride.available_seats,
        'seats_held': seats_held,
        'difference': ride.total_seats - ride.available_seats - seats_held,
    }


def check_ride(ride):
    """Return a description of the ride's seat imbalance, or None if it balances."""
    ride = with_held_seats(Ride.objects.filter(pk=ride.pk)).get()
    return _discrepancy(ride, ride.seats_held)


def ledger_discrepancies(queryset=None):
    """List every ride whose seat counts do not balance."""
    found = []
    for ride in with_held_seats(queryset).order_by('pk'):
        problem = _discrepancy(ride, ride.seats_held)
        if problem is not None:
            found.append(problem)
    return found

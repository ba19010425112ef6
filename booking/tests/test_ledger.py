from datetime import timedelta
from unittest import mock

from django.test import TestCase
from django.utils import timezone

from booking import ledger
from booking.exceptions import (
    BookingNotCancellable,
    BookingNotConfirmable,
    BookingNotFound,
    InsufficientCapacity,
    InvalidSeatCount,
    RideNotFound,
    RideUnavailable,
)
from booking.models import Booking, Ride
from payments.models import Transaction
from payments.services import record_booking_transaction
from .factories import assert_ledger_balances, make_driver, make_passenger, make_ride


class ReserveTest(TestCase):
    def setUp(self):
        self.driver = make_driver()
        self.passenger = make_passenger()
        self.ride = make_ride(self.driver, seats=3)

    def test_reserve_takes_seats_and_creates_pending_booking(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 2)

        self.ride.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_PENDING)
        self.assertEqual(booking.seats_booked, 2)
        self.assertEqual(self.ride.available_seats, 1)
        self.assertEqual(self.ride.status, Ride.STATUS_AVAILABLE)
        assert_ledger_balances(self, self.ride)

    def test_ride_turns_full_when_last_seat_goes(self):
        ledger.reserve(self.ride.pk, self.passenger, 2)
        self.ride.refresh_from_db()
        self.assertEqual(self.ride.status, Ride.STATUS_AVAILABLE)

        ledger.reserve(self.ride.pk, self.passenger, 1)
        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 0)
        self.assertEqual(self.ride.status, Ride.STATUS_FULL)
        assert_ledger_balances(self, self.ride)

    def test_too_many_seats_leaves_state_unchanged(self):
        ledger.reserve(self.ride.pk, self.passenger, 2)

        with self.assertRaises(InsufficientCapacity):
            ledger.reserve(self.ride.pk, self.passenger, 2)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 1)
        self.assertEqual(self.ride.status, Ride.STATUS_AVAILABLE)
        self.assertEqual(self.ride.bookings.count(), 1)

    def test_two_reservations_within_capacity_both_succeed(self):
        other = make_passenger(email='grace@example.com', full_name='Grace Achieng')

        ledger.reserve(self.ride.pk, self.passenger, 1)
        ledger.reserve(self.ride.pk, other, 2)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 0)
        self.assertEqual(self.ride.status, Ride.STATUS_FULL)
        assert_ledger_balances(self, self.ride)

    def test_stale_read_cannot_oversubscribe(self):
        stale = Ride.objects.get(pk=self.ride.pk)
        ledger.reserve(self.ride.pk, self.passenger, 2)

        # The lock hands back a copy that still shows three free seats
        with mock.patch('booking.ledger._lock_ride', return_value=stale):
            with self.assertRaises(InsufficientCapacity):
                ledger.reserve(self.ride.pk, self.passenger, 2)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 1)
        self.assertEqual(self.ride.bookings.count(), 1)
        assert_ledger_balances(self, self.ride)

    def test_invalid_seat_counts(self):
        for value in (0, -1, 'two', None):
            with self.assertRaises(InvalidSeatCount):
                ledger.reserve(self.ride.pk, self.passenger, value)
        self.assertFalse(Booking.objects.exists())

    def test_missing_ride(self):
        with self.assertRaises(RideNotFound):
            ledger.reserve(999999, self.passenger, 1)

    def test_full_ride_reports_missing_seats(self):
        ledger.reserve(self.ride.pk, self.passenger, 3)

        with self.assertRaises(InsufficientCapacity):
            ledger.reserve(self.ride.pk, self.passenger, 1)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.status, Ride.STATUS_FULL)
        self.assertEqual(self.ride.bookings.count(), 1)

    def test_closed_ride_is_unavailable(self):
        for status in (Ride.STATUS_CANCELLED, Ride.STATUS_COMPLETED):
            ride = make_ride(self.driver, seats=2, status=status)
            with self.assertRaises(RideUnavailable):
                ledger.reserve(ride.pk, self.passenger, 1)

    def test_departed_ride_is_unavailable(self):
        ride = make_ride(self.driver, departure=timezone.now() - timedelta(minutes=5))
        with self.assertRaises(RideUnavailable):
            ledger.reserve(ride.pk, self.passenger, 1)

    def test_driver_cannot_book_own_ride(self):
        with self.assertRaises(RideUnavailable):
            ledger.reserve(self.ride.pk, self.driver, 1)


class ReleaseTest(TestCase):
    def setUp(self):
        self.driver = make_driver()
        self.passenger = make_passenger()
        self.ride = make_ride(self.driver, seats=3)

    def test_release_restores_exact_seats(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 2)

        released = ledger.release(booking.pk, actor=self.passenger)

        self.ride.refresh_from_db()
        self.assertEqual(released.status, Booking.STATUS_CANCELLED)
        self.assertEqual(self.ride.available_seats, 3)
        assert_ledger_balances(self, self.ride)

    def test_second_release_is_a_no_op(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 2)
        ledger.release(booking.pk)
        ledger.release(booking.pk)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 3)
        assert_ledger_balances(self, self.ride)

    def test_release_reopens_full_ride(self):
        first = ledger.reserve(self.ride.pk, self.passenger, 1)
        ledger.reserve(self.ride.pk, self.passenger, 2)
        self.ride.refresh_from_db()
        self.assertEqual(self.ride.status, Ride.STATUS_FULL)

        ledger.release(first.pk)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.status, Ride.STATUS_AVAILABLE)
        self.assertEqual(self.ride.available_seats, 1)

    def test_driver_may_release_a_booking(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 1)
        ledger.release(booking.pk, actor=self.driver)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_CANCELLED)

    def test_stranger_cannot_release(self):
        stranger = make_passenger(email='stranger@example.com', full_name='Sam Stranger')
        booking = ledger.reserve(self.ride.pk, self.passenger, 1)

        with self.assertRaises(BookingNotFound):
            ledger.release(booking.pk, actor=stranger)

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_PENDING)

    def test_missing_booking(self):
        with self.assertRaises(BookingNotFound):
            ledger.release(424242)

    def test_completed_booking_cannot_be_released(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 1)
        Booking.objects.filter(pk=booking.pk).update(status=Booking.STATUS_COMPLETED)

        with self.assertRaises(BookingNotCancellable):
            ledger.release(booking.pk)

    def test_release_reverses_fare_transaction(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 1)
        ledger.confirm(booking.pk)
        record_booking_transaction(Booking.objects.get(pk=booking.pk))

        ledger.release(booking.pk)

        self.assertEqual(
            list(Transaction.objects.values_list('status', flat=True)),
            [Transaction.STATUS_REVERSED],
        )


class ConfirmTest(TestCase):
    def setUp(self):
        self.driver = make_driver()
        self.passenger = make_passenger()
        self.ride = make_ride(self.driver, seats=3)

    def test_confirm_pending_booking(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 1)
        self.assertEqual(ledger.confirm(booking.pk).status, Booking.STATUS_CONFIRMED)
        # Confirming again changes nothing
        self.assertEqual(ledger.confirm(booking.pk).status, Booking.STATUS_CONFIRMED)

    def test_cancelled_booking_cannot_be_confirmed(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 1)
        ledger.release(booking.pk)
        with self.assertRaises(BookingNotConfirmable):
            ledger.confirm(booking.pk)


class RideLifecycleTest(TestCase):
    def setUp(self):
        self.driver = make_driver()
        self.passenger = make_passenger()
        self.other = make_passenger(email='grace@example.com', full_name='Grace Achieng')
        self.ride = make_ride(self.driver, seats=4)

    def test_cancel_ride_releases_every_live_booking(self):
        ledger.reserve(self.ride.pk, self.passenger, 2)
        confirmed = ledger.reserve(self.ride.pk, self.other, 2)
        ledger.confirm(confirmed.pk)

        ride = ledger.cancel_ride(self.ride.pk, self.driver)

        self.assertEqual(ride.status, Ride.STATUS_CANCELLED)
        self.assertEqual(ride.available_seats, 4)
        self.assertFalse(ride.bookings.exclude(status=Booking.STATUS_CANCELLED).exists())
        assert_ledger_balances(self, ride)

    def test_only_the_driver_can_cancel(self):
        other_driver = make_driver(email='otto@example.com', full_name='Otto Mugisha')
        with self.assertRaises(RideNotFound):
            ledger.cancel_ride(self.ride.pk, other_driver)

    def test_complete_ride_keeps_paid_seats(self):
        unpaid = ledger.reserve(self.ride.pk, self.passenger, 1)
        paid = ledger.reserve(self.ride.pk, self.other, 2)
        ledger.confirm(paid.pk)

        ride = ledger.complete_ride(self.ride.pk, self.driver)

        unpaid.refresh_from_db()
        paid.refresh_from_db()
        self.assertEqual(ride.status, Ride.STATUS_COMPLETED)
        self.assertEqual(unpaid.status, Booking.STATUS_CANCELLED)
        self.assertEqual(paid.status, Booking.STATUS_COMPLETED)
        self.assertEqual(ride.available_seats, 2)
        assert_ledger_balances(self, ride)

    def test_completed_ride_cannot_be_cancelled(self):
        ledger.complete_ride(self.ride.pk, self.driver)
        with self.assertRaises(RideUnavailable):
            ledger.cancel_ride(self.ride.pk, self.driver)


class LedgerReportTest(TestCase):
    def setUp(self):
        self.driver = make_driver()
        self.passenger = make_passenger()
        self.ride = make_ride(self.driver, seats=3)

    def test_balanced_rides_are_not_reported(self):
        booking = ledger.reserve(self.ride.pk, self.passenger, 2)
        ledger.reserve(self.ride.pk, self.passenger, 1)
        ledger.release(booking.pk)

        self.assertEqual(ledger.ledger_discrepancies(), [])
        self.assertIsNone(ledger.check_ride(self.ride))

    def test_seat_count_written_outside_the_ledger_is_reported(self):
        ledger.reserve(self.ride.pk, self.passenger, 2)
        Ride.objects.filter(pk=self.ride.pk).update(available_seats=3)

        problems = ledger.ledger_discrepancies()

        self.assertEqual(len(problems), 1)
        self.assertEqual(problems[0]['ride_id'], self.ride.pk)
        self.assertEqual(problems[0]['seats_held'], 2)
        self.assertEqual(problems[0]['difference'], -2)
        self.assertEqual(ledger.check_ride(self.ride), problems[0])

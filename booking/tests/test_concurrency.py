import threading
import time

from django.db import OperationalError, connection
from django.test import TransactionTestCase

from booking import ledger
from booking.exceptions import InsufficientCapacity
from booking.models import Booking, Ride
from .factories import make_driver, make_passenger, make_ride

ATTEMPTS = 50


def _attempt(call):
    # SQLite reports a busy database instead of waiting on the row lock
    for attempt in range(ATTEMPTS):
        try:
            return call()
        except OperationalError:
            time.sleep(0.01 * (attempt + 1))
    return call()


def run_together(*calls):
    """Run each call on its own thread and connection, released at the same moment."""
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(index, call):
        try:
            barrier.wait()
            outcomes[index] = _attempt(call)
        except Exception as e:
            outcomes[index] = e
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return outcomes


class ConcurrentLedgerTest(TransactionTestCase):
    def setUp(self):
        self.driver = make_driver()
        self.ride = make_ride(self.driver, seats=3)
        self.paula = make_passenger()
        self.grace = make_passenger(email='grace@example.com', full_name='Grace Achieng')

    def test_competing_reservations_never_oversubscribe(self):
        outcomes = run_together(
            lambda: ledger.reserve(self.ride.pk, self.paula, 2),
            lambda: ledger.reserve(self.ride.pk, self.grace, 2),
        )

        bookings = [o for o in outcomes if isinstance(o, Booking)]
        refused = [o for o in outcomes if isinstance(o, InsufficientCapacity)]
        self.assertEqual(len(bookings), 1, outcomes)
        self.assertEqual(len(refused), 1, outcomes)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 1)
        self.assertEqual(Booking.objects.filter(ride=self.ride).count(), 1)
        self.assertEqual(ledger.ledger_discrepancies(), [])

    def test_single_seat_requests_fill_the_ride_exactly(self):
        riders = [self.paula, self.grace] + [
            make_passenger(email=f'rider{i}@example.com', full_name=f'Rider Number{i}') for i in range(2)
        ]

        outcomes = run_together(*[
            (lambda rider=rider: ledger.reserve(self.ride.pk, rider, 1)) for rider in riders
        ])

        self.assertEqual(sum(isinstance(o, Booking) for o in outcomes), 3, outcomes)
        self.assertEqual(sum(isinstance(o, InsufficientCapacity) for o in outcomes), 1, outcomes)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 0)
        self.assertEqual(self.ride.status, Ride.STATUS_FULL)
        self.assertEqual(ledger.ledger_discrepancies(), [])

    def test_concurrent_release_credits_seats_once(self):
        booking = ledger.reserve(self.ride.pk, self.paula, 2)

        outcomes = run_together(
            lambda: ledger.release(booking.pk),
            lambda: ledger.release(booking.pk),
        )

        for outcome in outcomes:
            self.assertIsInstance(outcome, Booking)
            self.assertEqual(outcome.status, Booking.STATUS_CANCELLED)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 3)
        self.assertEqual(self.ride.status, Ride.STATUS_AVAILABLE)
        self.assertEqual(ledger.ledger_discrepancies(), [])

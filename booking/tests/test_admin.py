from django.db.models import ProtectedError
from django.test import TestCase

from booking import ledger
from booking.models import Booking
from user.models import CustomUser
from .factories import PASSWORD, assert_ledger_balances, make_driver, make_passenger, make_ride


class BookingAdminTest(TestCase):
    def setUp(self):
        self.staff = CustomUser.objects.create_superuser(
            username='ops@example.com', email='ops@example.com', password=PASSWORD,
        )
        self.client.force_login(self.staff)
        self.driver = make_driver()
        self.passenger = make_passenger()
        self.ride = make_ride(self.driver, seats=3)
        self.booking = ledger.reserve(self.ride.pk, self.passenger, 2)

    def test_bookings_cannot_be_deleted(self):
        response = self.client.post(f'/admin/booking/booking/{self.booking.pk}/delete/', {'post': 'yes'})

        self.assertEqual(response.status_code, 403)
        self.assertTrue(Booking.objects.filter(pk=self.booking.pk).exists())
        self.assertEqual(ledger.ledger_discrepancies(), [])

    def test_cancel_action_returns_seats(self):
        response = self.client.post('/admin/booking/booking/', {
            'action': 'cancel_bookings',
            '_selected_action': [self.booking.pk],
        })

        self.assertEqual(response.status_code, 302)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.STATUS_CANCELLED)
        self.ride.refresh_from_db()
        self.assertEqual(self.ride.available_seats, 3)
        assert_ledger_balances(self, self.ride)

    def test_cancel_action_keeps_completed_bookings(self):
        ledger.confirm(self.booking.pk)
        ledger.complete_ride(self.ride.pk, self.driver)

        self.client.post('/admin/booking/booking/', {
            'action': 'cancel_bookings',
            '_selected_action': [self.booking.pk],
        })

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.STATUS_COMPLETED)
        assert_ledger_balances(self, self.ride)

    def test_passenger_with_bookings_cannot_be_deleted(self):
        with self.assertRaises(ProtectedError):
            self.passenger.delete()

        self.assertTrue(Booking.objects.filter(pk=self.booking.pk).exists())
        self.assertEqual(ledger.ledger_discrepancies(), [])

from django.db import IntegrityError
from django.test import SimpleTestCase

from booking.exceptions import BookingNotFound, InsufficientCapacity, RideNotFound, RideUnavailable
from rideshare.errors import GENERIC_ERROR_MESSAGE, ServiceError, api_exception_handler, sanitize_error
from user.exceptions import AccountExists, InvalidCredentials


class SanitizeErrorTest(SimpleTestCase):
    def test_backend_messages(self):
        cases = {
            'duplicate key value violates unique constraint "user_email_key"': 'This record already exists.',
            'insert or update on table "bookings" violates foreign key constraint': 'A referenced item was not found.',
            'null value in column "destination" violates not-null constraint': 'A required field is missing.',
            'new row for relation "rides" violates check constraint "ride_available_seats_range"': 'Invalid data provided.',
            'Not enough seats available': 'Not enough seats available for this ride.',
            'Ride is not available for booking': 'This ride is no longer available for booking.',
            'Ride not found': 'The ride could not be found.',
            'Unauthorized': 'You do not have permission for this action.',
            'Invalid login credentials': 'Invalid email or password.',
            'Email not confirmed': 'Please confirm your email address before signing in.',
            'User already registered': 'An account with this email already exists.',
        }
        for raw, expected in cases.items():
            self.assertEqual(sanitize_error(raw), expected, raw)

    def test_unknown_messages_are_hidden(self):
        self.assertEqual(sanitize_error('relation "rides" does not exist'), GENERIC_ERROR_MESSAGE)
        self.assertEqual(sanitize_error(RuntimeError('connection reset by peer')), GENERIC_ERROR_MESSAGE)
        self.assertEqual(sanitize_error(''), GENERIC_ERROR_MESSAGE)

    def test_domain_errors(self):
        self.assertEqual(sanitize_error(InsufficientCapacity('not enough seats on ride 4')),
                         'Not enough seats available for this ride.')
        self.assertEqual(sanitize_error(RideUnavailable('ride is not available: ride 4 is full')),
                         'This ride is no longer available for booking.')
        self.assertEqual(sanitize_error(RideNotFound('ride not found: 4')), 'The ride could not be found.')
        self.assertEqual(sanitize_error(InvalidCredentials('invalid login credentials')),
                         'Invalid email or password.')
        self.assertEqual(sanitize_error(AccountExists('user already registered: a@b.ug')),
                         'An account with this email already exists.')

    def test_user_message_fallback(self):
        self.assertEqual(sanitize_error(BookingNotFound('booking 12 missing')), 'The booking could not be found.')
        self.assertEqual(sanitize_error(ServiceError('something odd')), GENERIC_ERROR_MESSAGE)


class ExceptionHandlerTest(SimpleTestCase):
    def test_service_error_response(self):
        response = api_exception_handler(InsufficientCapacity('not enough seats on ride 4: 1 left'), {})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data, {
            'error': 'Not enough seats available for this ride.',
            'code': 'insufficient_capacity',
        })

    def test_integrity_error_response(self):
        response = api_exception_handler(IntegrityError('UNIQUE constraint failed: booking_rating.ride_id'), {})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['error'], 'This record already exists.')

    def test_unhandled_exceptions_fall_through(self):
        self.assertIsNone(api_exception_handler(ValueError('boom'), {}))

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework.test import APIClient

from booking.tests.factories import PASSWORD, make_driver, make_passenger, make_user
from user.models import CustomUser, DriverDetails, Profile, UserRole


class RegistrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_creates_account_and_user_role(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'Paula@Example.com',
            'password': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['email'], 'paula@example.com')
        self.assertEqual(body['state'], 'onboarding_required')
        user = CustomUser.objects.get(email='paula@example.com')
        self.assertTrue(UserRole.objects.filter(user=user, role=UserRole.USER).exists())

    def test_duplicate_email(self):
        make_user('paula@example.com')
        response = self.client.post('/api/auth/register/', {
            'email': 'PAULA@example.com',
            'password': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], 'An account with this email already exists.')

    def test_constraint_conflict_reports_existing_account(self):
        # Passes the email lookup but collides on the unique username
        CustomUser.objects.create_user(username='paula@example.com', email='p.nakato@example.com', password=PASSWORD)

        response = self.client.post('/api/auth/register/', {
            'email': 'paula@example.com',
            'password': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], 'An account with this email already exists.')
        self.assertEqual(CustomUser.objects.count(), 1)

    def test_weak_password_is_rejected(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'paula@example.com',
            'password': '12345678',
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('password', response.json()['errors'])


class LoginTest(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_login_with_email(self):
        make_passenger()
        response = self.client.post('/api/auth/login/', {
            'email': 'paula@example.com',
            'password': PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['state'], 'passenger')

    def test_wrong_password(self):
        make_passenger()
        response = self.client.post('/api/auth/login/', {
            'email': 'paula@example.com',
            'password': 'not-the-password',
        }, format='json')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], 'Invalid email or password.')

    def test_unconfirmed_account(self):
        make_user('pending@example.com', is_active=False)
        response = self.client.post('/api/auth/login/', {
            'email': 'pending@example.com',
            'password': PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error'], 'Please confirm your email address before signing in.')


class OnboardingTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user('newbie@example.com')
        self.client.force_login(self.user)

    def test_passenger_onboarding(self):
        response = self.client.post('/api/onboarding/', {
            'full_name': 'Paula Nakato',
            'phone_number': '0771234567',
            'role': 'passenger',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['state'], 'passenger')
        self.assertFalse(DriverDetails.objects.filter(user=self.user).exists())

    def test_driver_onboarding_creates_vehicle(self):
        response = self.client.post('/api/onboarding/', {
            'full_name': 'Derek Okello',
            'phone_number': '0701234567',
            'role': 'driver',
            'car_make': 'Toyota',
            'car_model': 'Wish',
            'license_plate': 'uax 123b',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        details = DriverDetails.objects.get(user=self.user)
        self.assertEqual(details.license_plate, 'UAX 123B')
        self.assertEqual(details.seats_available, 4)

    def test_driver_onboarding_is_all_or_nothing(self):
        response = self.client.post('/api/onboarding/', {
            'full_name': 'Derek Okello',
            'phone_number': '0701234567',
            'role': 'driver',
            'car_make': 'Toyota',
            'car_model': 'Wish',
            'license_plate': 'UAX 123B',
            'seats_available': 9,
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertIn('seats_available', response.json()['errors'])
        self.assertFalse(Profile.objects.filter(user=self.user).exists())

    def test_license_plate_is_unique_ignoring_case(self):
        make_driver(plate='UAX 123B')
        response = self.client.post('/api/onboarding/', {
            'full_name': 'Derek Okello',
            'phone_number': '0701234567',
            'role': 'driver',
            'car_make': 'Toyota',
            'car_model': 'Wish',
            'license_plate': 'uax 123b',
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('license_plate', response.json()['errors'])

    def test_short_name_and_phone(self):
        response = self.client.post('/api/onboarding/', {
            'full_name': 'P',
            'phone_number': '07712',
            'role': 'passenger',
        }, format='json')
        errors = response.json()['errors']
        self.assertIn('full_name', errors)
        self.assertIn('phone_number', errors)

    def test_second_onboarding_is_rejected(self):
        data = {'full_name': 'Paula Nakato', 'phone_number': '0771234567', 'role': 'passenger'}
        self.client.post('/api/onboarding/', data, format='json')
        response = self.client.post('/api/onboarding/', dict(data, role='driver'), format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(Profile.objects.get(user=self.user).role, 'passenger')


class ProfileTest(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_update_profile(self):
        self.client.force_login(make_passenger())
        response = self.client.patch('/api/profile/', {'full_name': 'Paula Nakato Mirembe'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['full_name'], 'Paula Nakato Mirembe')
        self.assertEqual(response.json()['phone_number'], '0771234567')

    def test_role_change_is_forbidden(self):
        self.client.force_login(make_passenger())
        response = self.client.patch('/api/profile/', {'role': 'driver'}, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['code'], 'role_change_forbidden')

    def test_driver_updates_vehicle(self):
        driver = make_driver()
        self.client.force_login(driver)
        response = self.client.patch('/api/profile/vehicle/', {'seats_available': 7, 'car_color': 'Blue'}, format='json')
        self.assertEqual(response.status_code, 200)
        driver.driver_details.refresh_from_db()
        self.assertEqual(driver.driver_details.seats_available, 7)
        self.assertEqual(driver.driver_details.car_make, 'Toyota')

    def test_rating_summary_without_ratings(self):
        driver = make_driver()
        self.client.force_login(make_passenger())
        body = self.client.get(f'/api/users/{driver.pk}/rating/').json()
        self.assertEqual(body['rating'], {'average': 0.0, 'count': 0})


class GrantAdminCommandTest(TestCase):
    def test_grant_and_revoke(self):
        user = make_passenger()
        call_command('grant_admin', 'paula@example.com')
        self.assertTrue(UserRole.objects.filter(user=user, role=UserRole.ADMIN).exists())

        call_command('grant_admin', 'paula@example.com', '--revoke')
        self.assertFalse(UserRole.objects.filter(user=user, role=UserRole.ADMIN).exists())

    def test_unknown_email(self):
        with self.assertRaises(CommandError):
            call_command('grant_admin', 'nobody@example.com')

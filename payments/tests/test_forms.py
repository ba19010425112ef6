from django.test import TestCase

from payments.forms import MobileMoneyPaymentForm


class MobileMoneyPaymentFormTest(TestCase):
    def form(self, phone, **extra):
        data = {'payment_type': 'subscription', 'provider': 'mtn', 'phone_number': phone}
        data.update(extra)
        return MobileMoneyPaymentForm(data=data)

    def test_accepted_phone_formats(self):
        for phone in ('0771234567', '256771234567', '+256771234567', '077 123 4567'):
            form = self.form(phone)
            self.assertTrue(form.is_valid(), phone)

        form = self.form(' 077 123 4567 ')
        form.is_valid()
        self.assertEqual(form.cleaned_data['phone_number'], '0771234567')

    def test_rejected_phone_formats(self):
        for phone in ('0671234567', '077123456', '2567712345678', '+254771234567', 'phone'):
            form = self.form(phone)
            self.assertFalse(form.is_valid(), phone)
            self.assertIn('phone_number', form.errors)

    def test_unknown_provider(self):
        self.assertFalse(self.form('0771234567', provider='mpesa').is_valid())

    def test_booking_payment_needs_booking(self):
        form = self.form('0771234567', payment_type='booking')
        self.assertFalse(form.is_valid())
        self.assertIn('booking_id', form.errors)

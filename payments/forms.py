import re

from django import forms
from django.core.exceptions import ValidationError

from .models import MobileMoneyPayment

# 07XXXXXXXX, 2567XXXXXXXX or +2567XXXXXXXX
UGANDA_PHONE_RE = re.compile(r'^(07\d{8}|2567\d{8}|\+2567\d{8})$')


class MobileMoneyPaymentForm(forms.Form):
    payment_type = forms.ChoiceField(choices=MobileMoneyPayment.TYPE_CHOICES)
    provider = forms.ChoiceField(choices=MobileMoneyPayment.PROVIDER_CHOICES)
    phone_number = forms.CharField(max_length=20)
    booking_id = forms.IntegerField(required=False, min_value=1)

    def clean_phone_number(self):
        phone = re.sub(r'\s+', '', self.cleaned_data.get('phone_number', ''))
        if not UGANDA_PHONE_RE.match(phone):
            raise ValidationError('Please enter a valid Ugandan phone number (e.g., 0771234567)')
        return phone

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('payment_type') == MobileMoneyPayment.TYPE_BOOKING and not cleaned.get('booking_id'):
            self.add_error('booking_id', 'A booking is needed for a booking payment')
        return cleaned

from django import forms
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError

from .models import CustomUser, DriverDetails, Profile


class RegistrationForm(forms.Form):
    email = forms.EmailField(required=True)
    password = forms.CharField(required=True, min_length=6, strip=False)

    def clean_email(self):
        return self.cleaned_data.get('email', '').strip().lower()

    def clean(self):
        cleaned = super().clean()
        email = cleaned.get('email')
        password = cleaned.get('password')
        if email and password:
            try:
                validate_password(password, CustomUser(username=email, email=email))
            except ValidationError as exc:
                self.add_error('password', exc)
        return cleaned


class LoginForm(forms.Form):
    email = forms.EmailField(required=True)
    password = forms.CharField(required=True, strip=False)

    def clean_email(self):
        return self.cleaned_data.get('email', '').strip().lower()


class OnboardingForm(forms.ModelForm):
    class Meta:
        model = Profile
        fields = ['full_name', 'phone_number', 'role']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['phone_number'].required = True

    def clean_full_name(self):
        full_name = (self.cleaned_data.get('full_name') or '').strip()
        if len(full_name) < 2:
            raise ValidationError('Name must be at least 2 characters')
        return full_name

    def clean_phone_number(self):
        phone = (self.cleaned_data.get('phone_number') or '').strip()
        if len(phone) < 10:
            raise ValidationError('Phone number must be at least 10 digits')
        return phone


class DriverDetailsForm(forms.ModelForm):
    class Meta:
        model = DriverDetails
        fields = ['car_make', 'car_model', 'car_color', 'license_plate', 'seats_available']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['seats_available'].required = False

    def clean_car_make(self):
        car_make = (self.cleaned_data.get('car_make') or '').strip()
        if len(car_make) < 2:
            raise ValidationError('Car make is required')
        return car_make

    def clean_car_model(self):
        car_model = (self.cleaned_data.get('car_model') or '').strip()
        if not car_model:
            raise ValidationError('Car model is required')
        return car_model

    def clean_license_plate(self):
        plate = (self.cleaned_data.get('license_plate') or '').strip().upper()
        if len(plate) < 3:
            raise ValidationError('License plate is required')

        qs = DriverDetails.objects.filter(license_plate__iexact=plate)
        if self.instance and self.instance.pk:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise ValidationError('This license plate is already registered')
        return plate

    def clean_seats_available(self):
        seats = self.cleaned_data.get('seats_available')
        if seats is None:
            if self.instance and self.instance.pk:
                return self.instance.seats_available
            return 4
        if seats < DriverDetails.MIN_SEATS or seats > DriverDetails.MAX_SEATS:
            raise ValidationError(
                f'Seats must be between {DriverDetails.MIN_SEATS} and {DriverDetails.MAX_SEATS}'
            )
        return seats


class ProfileUpdateForm(forms.ModelForm):
    class Meta:
        model = Profile
        fields = ['full_name', 'phone_number', 'avatar_url']

    def clean_full_name(self):
        full_name = (self.cleaned_data.get('full_name') or '').strip()
        if len(full_name) < 2:
            raise ValidationError('Name must be at least 2 characters')
        return full_name

    def clean_phone_number(self):
        phone = (self.cleaned_data.get('phone_number') or '').strip()
        if phone and len(phone) < 10:
            raise ValidationError('Phone number must be at least 10 digits')
        return phone or None

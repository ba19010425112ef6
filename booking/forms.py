from django import forms
from django.core.exceptions import ValidationError
from django.utils import timezone

from user.models import DriverDetails
from .models import Rating, Ride


class RideForm(forms.ModelForm):
    total_seats = forms.IntegerField(
        required=False,
        min_value=DriverDetails.MIN_SEATS,
        max_value=DriverDetails.MAX_SEATS,
    )

    class Meta:
        model = Ride
        fields = [
            'pickup_location', 'pickup_latitude', 'pickup_longitude',
            'destination', 'destination_latitude', 'destination_longitude',
            'departure_time', 'total_seats', 'notes',
        ]

    def __init__(self, *args, vehicle_seats=None, **kwargs):
        self.vehicle_seats = vehicle_seats
        super().__init__(*args, **kwargs)

    def clean_pickup_location(self):
        pickup = (self.cleaned_data.get('pickup_location') or '').strip()
        if len(pickup) < 3:
            raise ValidationError('Pickup location is required')
        return pickup

    def clean_destination(self):
        destination = (self.cleaned_data.get('destination') or '').strip()
        if len(destination) < 3:
            raise ValidationError('Destination is required')
        return destination

    def clean_departure_time(self):
        departure = self.cleaned_data.get('departure_time')
        if departure is not None and departure <= timezone.now():
            raise ValidationError('Departure time must be in the future')
        return departure

    def clean_total_seats(self):
        seats = self.cleaned_data.get('total_seats')
        if seats is None:
            seats = 3
        if self.vehicle_seats is not None and seats > self.vehicle_seats:
            raise ValidationError(f'Your vehicle only has {self.vehicle_seats} seats')
        return seats

    def clean(self):
        cleaned = super().clean()
        for prefix in ('pickup', 'destination'):
            lat = cleaned.get(f'{prefix}_latitude')
            lon = cleaned.get(f'{prefix}_longitude')
            if (lat is None) != (lon is None):
                raise ValidationError(f'Provide both latitude and longitude for the {prefix}')
        return cleaned

    def save(self, commit=True):
        ride = super().save(commit=False)
        # New rides start with every seat free at the fixed fare
        ride.available_seats = ride.total_seats
        ride.status = Ride.STATUS_AVAILABLE
        if commit:
            ride.save()
        return ride


class BookingRequestForm(forms.Form):
    seats = forms.IntegerField(required=False, min_value=1, max_value=DriverDetails.MAX_SEATS)

    def clean_seats(self):
        seats = self.cleaned_data.get('seats')
        return 1 if seats is None else seats


class RideSearchForm(forms.Form):
    pickup = forms.CharField(required=False, max_length=255)
    destination = forms.CharField(required=False, max_length=255)


class RatingForm(forms.ModelForm):
    rated_user = forms.IntegerField(min_value=1)

    class Meta:
        model = Rating
        fields = ['rating', 'comment']

    def clean_rating(self):
        rating = self.cleaned_data.get('rating')
        if rating is None or rating < 1 or rating > 5:
            raise ValidationError('Rating must be between 1 and 5')
        return rating

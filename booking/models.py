from django.db import models
from django.db.models import F, Q

from payments.commission import FARE_PER_SEAT, booking_fare
from user.models import CustomUser


class Ride(models.Model):
    STATUS_AVAILABLE = 'available'
    STATUS_FULL = 'full'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_FULL, 'Full'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    OPEN_STATUSES = (STATUS_AVAILABLE, STATUS_FULL)
    CLOSED_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

    driver = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='rides')

    pickup_location = models.CharField(max_length=255)
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    destination = models.CharField(max_length=255)
    destination_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    destination_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    departure_time = models.DateTimeField()
    # Seats offered when the ride was posted; never changes afterwards
    total_seats = models.PositiveIntegerField()
    available_seats = models.PositiveIntegerField()
    fare_per_seat = models.PositiveIntegerField(default=FARE_PER_SEAT)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE)
    notes = models.TextField(blank=True, null=True)

    estimated_distance_km = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    estimated_duration_seconds = models.PositiveIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['departure_time']
        indexes = [
            models.Index(fields=['status', 'departure_time'], name='ride_status_departure_idx'),
            models.Index(fields=['driver', 'status'], name='ride_driver_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_seats__gte=1),
                name='ride_total_seats_positive',
            ),
            models.CheckConstraint(
                condition=Q(available_seats__gte=0) & Q(available_seats__lte=F('total_seats')),
                name='ride_available_seats_range',
            ),
        ]

    def __str__(self):
        return f"Ride {self.id}: {self.pickup_location} to {self.destination}"

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    @property
    def has_coordinates(self):
        return None not in (
            self.pickup_latitude, self.pickup_longitude,
            self.destination_latitude, self.destination_longitude,
        )


class Booking(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending Payment'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
    ]
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)
    PAST_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)
    # Bookings that hold seats on their ride
    SEAT_HOLDING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_COMPLETED)

    ride = models.ForeignKey(Ride, on_delete=models.CASCADE, related_name='bookings')
    # Booked seats return only through the ledger
    passenger = models.ForeignKey(CustomUser, on_delete=models.PROTECT, related_name='bookings')
    seats_booked = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['passenger', 'status'], name='booking_passenger_status_idx'),
            models.Index(fields=['ride', 'status'], name='booking_ride_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(seats_booked__gte=1),
                name='booking_seats_positive',
            ),
        ]

    def __str__(self):
        return f"Booking {self.id} - {self.seats_booked} seat(s) on ride {self.ride_id}"

    @property
    def total_fare(self):
        return booking_fare(self.seats_booked, self.ride.fare_per_seat)

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES


class Rating(models.Model):
    ride = models.ForeignKey(Ride, on_delete=models.CASCADE, related_name='ratings')
    rater = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='ratings_given')
    rated_user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='ratings_received')
    rating = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=Q(rating__gte=1) & Q(rating__lte=5),
                name='rating_stars_range',
            ),
            models.UniqueConstraint(
                fields=['ride', 'rater', 'rated_user'],
                name='unique_ride_rating',
            ),
        ]

    def __str__(self):
        return f"{self.rating}/5 for user {self.rated_user_id} on ride {self.ride_id}"

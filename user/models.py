from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Avg, Count, Q

from .exceptions import RoleChangeForbidden


class CustomUser(AbstractUser):
    # Accounts sign in with their email; username mirrors it
    email = models.EmailField('email address', unique=True)


class Profile(models.Model):
    ROLE_DRIVER = 'driver'
    ROLE_PASSENGER = 'passenger'
    ROLE_CHOICES = (
        (ROLE_DRIVER, 'Driver'),
        (ROLE_PASSENGER, 'Passenger'),
    )

    user = models.OneToOneField(CustomUser, on_delete=models.CASCADE, related_name='profile')
    full_name = models.CharField(max_length=100)
    phone_number = models.CharField(max_length=15, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES)
    avatar_url = models.URLField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['role'], name='profile_role_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.role})"

    def save(self, *args, **kwargs):
        if self.pk:
            stored_role = Profile.objects.filter(pk=self.pk).values_list('role', flat=True).first()
            if stored_role is not None and stored_role != self.role:
                raise RoleChangeForbidden(f"permission denied: role of profile {self.pk} is immutable")
        super().save(*args, **kwargs)

    @property
    def is_driver(self):
        return self.role == self.ROLE_DRIVER

    @property
    def is_passenger(self):
        return self.role == self.ROLE_PASSENGER

    @property
    def average_rating(self):
        """Average rating received by this user, rounded to one decimal place."""
        result = self.user.ratings_received.aggregate(
            average=Avg('rating'),
            count=Count('id')
        )

        avg = result['average']
        if avg is None:
            return {'average': 0.0, 'count': 0}

        return {
            'average': round(float(avg), 1),
            'count': result['count']
        }


class DriverDetails(models.Model):
    MIN_SEATS = 1
    MAX_SEATS = 8

    user = models.OneToOneField(CustomUser, on_delete=models.CASCADE, related_name='driver_details')
    car_make = models.CharField(max_length=50)
    car_model = models.CharField(max_length=50)
    car_color = models.CharField(max_length=30, blank=True, null=True)
    license_plate = models.CharField(max_length=20, unique=True)
    # Passenger seats in the vehicle; caps the seats a single ride may offer
    seats_available = models.PositiveSmallIntegerField(default=4)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Driver details'
        verbose_name_plural = 'Driver details'
        constraints = [
            models.CheckConstraint(
                condition=Q(seats_available__gte=1) & Q(seats_available__lte=8),
                name='driver_details_seats_range',
            ),
        ]

    def __str__(self):
        return f"{self.car_make} {self.car_model} ({self.license_plate})"


class UserRole(models.Model):
    """Platform capability grants, kept apart from the driver/passenger role."""
    ADMIN = 'admin'
    USER = 'user'
    ROLE_CHOICES = (
        (ADMIN, 'Admin'),
        (USER, 'User'),
    )

    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='app_roles')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=USER)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'role'], name='unique_user_app_role'),
        ]

    def __str__(self):
        return f"{self.user.email}: {self.role}"

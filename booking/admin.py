from django.contrib import admin, messages

from . import ledger
from .exceptions import BookingNotCancellable
from .models import Booking, Rating, Ride


class BookingInline(admin.TabularInline):
    model = Booking
    extra = 0
    fields = ['passenger', 'seats_booked', 'status', 'created_at']
    readonly_fields = ['passenger', 'seats_booked', 'status', 'created_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Ride)
class RideAdmin(admin.ModelAdmin):
    list_display = ['id', 'driver', 'pickup_location', 'destination', 'departure_time', 'available_seats', 'total_seats', 'status']
    list_filter = ['status']
    search_fields = ['pickup_location', 'destination', 'driver__email']
    date_hierarchy = 'departure_time'
    # Seat counts are changed only by bookings
    readonly_fields = ['total_seats', 'available_seats', 'created_at', 'updated_at']
    inlines = [BookingInline]

    fieldsets = (
        ('Route', {
            'fields': ('driver', 'pickup_location', 'destination', 'departure_time', 'notes')
        }),
        ('Seats', {
            'fields': ('total_seats', 'available_seats', 'fare_per_seat', 'status')
        }),
        ('Location', {
            'fields': ('pickup_latitude', 'pickup_longitude', 'destination_latitude', 'destination_longitude',
                       'estimated_distance_km', 'estimated_duration_seconds'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        if obj is None:
            return ['available_seats', 'created_at', 'updated_at']
        return self.readonly_fields

    def save_model(self, request, obj, form, change):
        if not change:
            obj.available_seats = obj.total_seats
        super().save_model(request, obj, form, change)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['id', 'ride', 'passenger', 'seats_booked', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['passenger__email', 'ride__pickup_location', 'ride__destination']
    # Status changes go through the seat ledger
    readonly_fields = ['ride', 'passenger', 'seats_booked', 'status', 'created_at', 'updated_at']
    actions = ['cancel_bookings']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description='Cancel selected bookings and return their seats')
    def cancel_bookings(self, request, queryset):
        cancelled = 0
        for booking in queryset.exclude(status=Booking.STATUS_CANCELLED):
            try:
                ledger.release(booking.pk)
            except BookingNotCancellable:
                self.message_user(request, f'Booking {booking.pk} is completed and was kept.', messages.WARNING)
                continue
            cancelled += 1
        self.message_user(request, f'Cancelled {cancelled} booking(s).')


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ['ride', 'rater', 'rated_user', 'rating', 'created_at']
    list_filter = ['rating']

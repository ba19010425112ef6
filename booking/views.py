import logging

from django.conf import settings
from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from payments.exceptions import SubscriptionRequired
from payments.services import driver_has_active_subscription
from user.models import CustomUser
from user.permissions import IsDriver, IsOnboarded, IsPassenger
from . import ledger
from .exceptions import RatingNotAllowed
from .forms import BookingRequestForm, RatingForm, RideForm, RideSearchForm
from .models import Booking, Rating, Ride
from .services import RoutingService
from .tasks import geocode_ride
from .utils import (
    booking_payload,
    driver_home_stats,
    passenger_payload,
    ride_payload,
    rides_with_driver,
    search_rides,
)

logger = logging.getLogger(__name__)


def _form_errors(form):
    return Response({'errors': form.errors.get_json_data()}, status=status.HTTP_400_BAD_REQUEST)


def _bookings_with_ride(queryset):
    return queryset.select_related(
        'ride', 'ride__driver', 'ride__driver__profile', 'ride__driver__driver_details'
    )


# Rides

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDriver])
def post_ride(request):
    """Publish a new ride offer for the calling driver."""
    if settings.REQUIRE_DRIVER_SUBSCRIPTION and not driver_has_active_subscription(request.user):
        raise SubscriptionRequired(f"driver {request.user.pk} has no active subscription")

    vehicle = request.access.driver_details
    if vehicle is None:
        return Response({'error': 'Please add your vehicle details first.'}, status=status.HTTP_400_BAD_REQUEST)

    form = RideForm(request.data, vehicle_seats=vehicle.seats_available)
    if not form.is_valid():
        return _form_errors(form)

    ride = form.save(commit=False)
    ride.driver = request.user
    ride.save()
    logger.info("Driver %s posted ride %s with %s seat(s)", request.user.pk, ride.pk, ride.total_seats)

    if RoutingService.is_configured():
        transaction.on_commit(lambda: geocode_ride.delay(ride.pk))

    return Response(ride_payload(ride), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPassenger])
def ride_search(request):
    form = RideSearchForm(request.query_params)
    if not form.is_valid():
        return _form_errors(form)

    rides = search_rides(
        pickup=form.cleaned_data.get('pickup', '').strip(),
        destination=form.cleaned_data.get('destination', '').strip(),
    )
    return Response({'results': [ride_payload(ride) for ride in rides]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOnboarded])
def ride_detail(request, ride_id):
    ride = get_object_or_404(rides_with_driver(), id=ride_id)
    return Response(ride_payload(ride))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDriver])
def my_rides(request):
    rides = rides_with_driver(Ride.objects.filter(driver=request.user)).order_by('-departure_time')
    return Response({
        'active': [ride_payload(r, include_driver=False) for r in rides if r.status in Ride.OPEN_STATUSES],
        'past': [ride_payload(r, include_driver=False) for r in rides if r.status in Ride.CLOSED_STATUSES],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDriver])
def ride_passengers(request, ride_id):
    ride = get_object_or_404(Ride, id=ride_id, driver=request.user)
    bookings = ride.bookings.exclude(status=Booking.STATUS_CANCELLED).select_related('passenger__profile')
    return Response({
        'ride_id': ride.id,
        'passengers': [passenger_payload(b) for b in bookings],
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDriver])
def cancel_ride(request, ride_id):
    ride = ledger.cancel_ride(ride_id, request.user)
    return Response(ride_payload(ride, include_driver=False))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDriver])
def complete_ride(request, ride_id):
    ride = ledger.complete_ride(ride_id, request.user)
    return Response(ride_payload(ride, include_driver=False))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDriver])
def driver_stats(request):
    return Response(driver_home_stats(request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOnboarded])
def rate_participant(request, ride_id):
    """Rate someone you travelled with on a completed ride."""
    ride = get_object_or_404(Ride, id=ride_id)
    form = RatingForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    rated_user = get_object_or_404(CustomUser, id=form.cleaned_data['rated_user'])
    if ride.status != Ride.STATUS_COMPLETED:
        raise RatingNotAllowed(f"ride {ride.pk} is {ride.status}")

    riders = set(
        ride.bookings.filter(status=Booking.STATUS_COMPLETED).values_list('passenger_id', flat=True)
    )
    participants = riders | {ride.driver_id}
    if request.user.pk not in participants or rated_user.pk not in participants:
        raise RatingNotAllowed(f"user {request.user.pk} cannot rate user {rated_user.pk} on ride {ride.pk}")
    if rated_user.pk == request.user.pk:
        raise RatingNotAllowed(f"user {request.user.pk} tried to rate themselves")
    if request.user.pk in riders and rated_user.pk in riders:
        raise RatingNotAllowed(f"passengers on ride {ride.pk} only rate the driver")

    rating = form.save(commit=False)
    rating.ride = ride
    rating.rater = request.user
    rating.rated_user = rated_user
    with transaction.atomic():
        rating.save()

    return Response({
        'id': rating.id,
        'ride_id': ride.id,
        'rated_user_id': rated_user.id,
        'rating': rating.rating,
        'comment': rating.comment,
    }, status=status.HTTP_201_CREATED)


# Bookings

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPassenger])
def book_ride(request, ride_id):
    form = BookingRequestForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    booking = ledger.reserve(ride_id, request.user, form.cleaned_data['seats'])
    booking = _bookings_with_ride(Booking.objects.filter(pk=booking.pk)).get()
    return Response(booking_payload(booking), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPassenger])
def my_bookings(request):
    bookings = _bookings_with_ride(Booking.objects.filter(passenger=request.user))
    return Response({
        'active': [booking_payload(b) for b in bookings if b.status in Booking.ACTIVE_STATUSES],
        'past': [booking_payload(b) for b in bookings if b.status in Booking.PAST_STATUSES],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOnboarded])
def booking_detail(request, booking_id):
    booking = get_object_or_404(_bookings_with_ride(Booking.objects.all()), id=booking_id)
    if request.user.pk not in (booking.passenger_id, booking.ride.driver_id):
        return Response({'error': 'The requested item could not be found.'}, status=status.HTTP_404_NOT_FOUND)
    return Response(booking_payload(booking))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOnboarded])
def cancel_booking(request, booking_id):
    booking = ledger.release(booking_id, actor=request.user)
    booking = _bookings_with_ride(Booking.objects.filter(pk=booking.pk)).get()
    return Response(booking_payload(booking))

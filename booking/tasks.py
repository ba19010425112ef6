import logging
from decimal import Decimal

from celery import shared_task

from .models import Ride
from .services import RoutingService

logger = logging.getLogger(__name__)


@shared_task
def geocode_ride(ride_id):
    """Fill in missing coordinates and the route estimate of a posted ride."""
    if not RoutingService.is_configured():
        return False

    try:
        ride = Ride.objects.get(id=ride_id)
    except Ride.DoesNotExist:
        return False

    routing_service = RoutingService()
    changed = []

    if ride.pickup_latitude is None or ride.pickup_longitude is None:
        match = routing_service.first_match(ride.pickup_location)
        if match:
            ride.pickup_latitude, ride.pickup_longitude = match
            changed += ['pickup_latitude', 'pickup_longitude']

    if ride.destination_latitude is None or ride.destination_longitude is None:
        match = routing_service.first_match(ride.destination)
        if match:
            ride.destination_latitude, ride.destination_longitude = match
            changed += ['destination_latitude', 'destination_longitude']

    if ride.has_coordinates:
        start = (float(ride.pickup_longitude), float(ride.pickup_latitude))
        end = (float(ride.destination_longitude), float(ride.destination_latitude))
        route_info = routing_service.calculate_route(start, end)
        if route_info:
            ride.estimated_distance_km = Decimal(str(route_info['distance']))
            ride.estimated_duration_seconds = route_info['duration']
            changed += ['estimated_distance_km', 'estimated_duration_seconds']

    if not changed:
        logger.info("No location data found for ride %s", ride_id)
        return False

    # Only location columns; seat counts belong to the ledger
    ride.save(update_fields=changed + ['updated_at'])
    return True

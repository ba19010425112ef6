import logging
import math
from decimal import Decimal

import openrouteservice
from openrouteservice import exceptions as ors_exceptions
import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class RoutingService:
    """Geocoding and route estimates from OpenRouteService."""

    base_url = 'https://api.openrouteservice.org'

    def __init__(self, api_key=None):
        self.api_key = api_key or settings.OPENROUTESERVICE_API_KEY
        self.client = openrouteservice.Client(key=self.api_key)

    @classmethod
    def is_configured(cls):
        return bool(getattr(settings, 'OPENROUTESERVICE_API_KEY', ''))

    def geocode_address(self, query, focus_point=None):
        """
        Geocode an address using the ORS geocoding API

        Args:
            query: Address string to geocode
            focus_point: tuple (lon, lat) to bias results (optional)

        Returns:
            list of results with formatted address, lat, lon
        """
        params = {
            'api_key': self.api_key,
            'text': query,
            'size': 5,
            'boundary.country': settings.GEOCODING_COUNTRY,
        }
        if focus_point:
            params['focus.point.lon'] = focus_point[0]
            params['focus.point.lat'] = focus_point[1]

        try:
            response = requests.get(f"{self.base_url}/geocode/search", params=params, timeout=10)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Geocoding failed for %r: %s", query, e)
            return []

        results = []
        for feature in data.get('features', []):
            props = feature.get('properties', {})
            coords = feature['geometry']['coordinates']
            results.append({
                'formatted': props.get('label', ''),
                'name': props.get('name', ''),
                'lat': coords[1],
                'lon': coords[0]
            })
        return results

    def first_match(self, query):
        """Coordinates ``(lat, lon)`` of the best geocoding hit, or None."""
        results = self.geocode_address(query)
        if not results:
            return None
        best = results[0]
        return Decimal(str(round(best['lat'], 6))), Decimal(str(round(best['lon'], 6)))

    def calculate_route(self, start_coords, end_coords, profile='driving-car'):
        """
        Calculate a route between two points

        Args:
            start_coords: tuple (longitude, latitude)
            end_coords: tuple (longitude, latitude)

        Returns:
            dict with distance (km) and duration (seconds), or None on failure
        """
        distance_m = self._haversine_distance(
            start_coords[1], start_coords[0],
            end_coords[1], end_coords[0]
        )
        # Too close for the routing engine to return anything useful
        if distance_m < 50:
            return {
                'distance': round(distance_m / 1000, 2),
                'duration': int(distance_m / 1.4),
                'too_close': True
            }

        try:
            route = self.client.directions(
                coordinates=[start_coords, end_coords],
                profile=profile,
                format='geojson',
            )
            segment = route['features'][0]['properties']['segments'][0]
        except (ors_exceptions.ApiError,
                ors_exceptions.Timeout,
                requests.RequestException,
                KeyError, IndexError) as e:
            logger.warning("Routing failed between %s and %s: %s", start_coords, end_coords, e)
            return None

        return {
            'distance': round(segment['distance'] / 1000, 2),
            'duration': int(segment['duration']),
            'too_close': False
        }

    def _haversine_distance(self, lat1, lon1, lat2, lon2):
        """Distance between two points in meters"""
        R = 6371000

        phi1 = math.radians(lat1)
        phi2 = math.radians(lat2)
        delta_phi = math.radians(lat2 - lat1)
        delta_lambda = math.radians(lon2 - lon1)

        a = math.sin(delta_phi/2)**2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda/2)**2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))

        return R * c

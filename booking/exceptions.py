from rest_framework import status

from rideshare.errors import ServiceError


class RideNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'ride_not_found'


class InvalidSeatCount(ServiceError):
    code = 'invalid_seat_count'
    user_message = 'Please choose at least one seat.'


class RideUnavailable(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'ride_unavailable'


class InsufficientCapacity(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'insufficient_capacity'


class BookingNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'booking_not_found'
    user_message = 'The booking could not be found.'


class BookingNotCancellable(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'booking_not_cancellable'
    user_message = 'Completed bookings cannot be cancelled.'


class BookingNotConfirmable(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'booking_not_confirmable'
    user_message = 'This booking can no longer be confirmed.'


class RatingNotAllowed(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'rating_not_allowed'
    user_message = 'You can only rate people you travelled with on a completed ride.'

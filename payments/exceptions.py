from rest_framework import status

from rideshare.errors import ServiceError


class SubscriptionRequired(ServiceError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = 'subscription_required'
    user_message = 'An active weekly subscription is needed to post rides.'


class PaymentNotAllowed(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'payment_not_allowed'
    user_message = 'This payment cannot be made.'


class PaymentNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'payment_not_found'
    user_message = 'The payment could not be found.'

from rest_framework import status

from rideshare.errors import ServiceError


class AccountExists(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'account_exists'


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = 'invalid_credentials'


class EmailNotConfirmed(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'email_not_confirmed'


class AlreadyOnboarded(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'already_onboarded'


class RoleChangeForbidden(ServiceError):
    """A profile's role is fixed once onboarding has created it."""
    status_code = status.HTTP_403_FORBIDDEN
    code = 'role_change_forbidden'

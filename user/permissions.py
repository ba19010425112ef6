from rest_framework.permissions import BasePermission

from .access import resolve_access


def _access(request):
    access = getattr(request, 'access', None)
    if access is None:
        # Requests built outside the middleware stack (e.g. APIRequestFactory)
        access = resolve_access(request.user)
        request.access = access
    return access


class IsOnboarded(BasePermission):
    message = 'Please complete your profile before continuing.'
    code = 'onboarding_required'

    def has_permission(self, request, view):
        return _access(request).profile is not None


class IsDriver(BasePermission):
    message = 'Only drivers can perform this action.'
    code = 'driver_required'

    def has_permission(self, request, view):
        return _access(request).is_driver


class IsPassenger(BasePermission):
    message = 'Only passengers can perform this action.'
    code = 'passenger_required'

    def has_permission(self, request, view):
        return _access(request).is_passenger


class IsPlatformAdmin(BasePermission):
    message = 'You do not have permission for this action.'
    code = 'admin_required'

    def has_permission(self, request, view):
        return _access(request).is_admin

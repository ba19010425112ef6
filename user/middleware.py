from django.utils.functional import SimpleLazyObject

from .access import resolve_access


class AccessContextMiddleware:
    """Attach the caller's AccessContext to each request as ``request.access``.

    Resolution is lazy and scoped to the request; must run after
    AuthenticationMiddleware.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.access = SimpleLazyObject(lambda: resolve_access(request.user))
        return self.get_response(request)

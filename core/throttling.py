from rest_framework.permissions import SAFE_METHODS
from rest_framework.throttling import ScopedRateThrottle, UserRateThrottle


class WriteScopedRateThrottle(ScopedRateThrottle):
    """Scoped throttle that only counts unsafe methods, so listings on a
    combined GET/POST endpoint do not eat into the write budget."""

    def allow_request(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().allow_request(request, view)


WRITE_THROTTLES = [UserRateThrottle, WriteScopedRateThrottle]

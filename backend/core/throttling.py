from rest_framework.throttling import UserRateThrottle


class MutationRateThrottle(UserRateThrottle):
    """Rate-limit writes per user (or per client IP when anonymous)."""

    scope = "mutation"

    def allow_request(self, request, view):
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            return super().allow_request(request, view)
        return True

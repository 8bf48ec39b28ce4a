from rest_framework.throttling import SimpleRateThrottle


class ClientIpRateThrottle(SimpleRateThrottle):
    """Rate limit by client address whether or not the caller is signed in."""

    def get_cache_key(self, request, view):
        return self.cache_format % {'scope': self.scope, 'ident': self.get_ident(request)}


class LoginRateThrottle(ClientIpRateThrottle):
    scope = 'login'


class PublicLookupRateThrottle(ClientIpRateThrottle):
    scope = 'public_lookup'

from rest_framework.throttling import SimpleRateThrottle


class CredentialRateThrottle(SimpleRateThrottle):
    """
    Limits login and registration attempts per submitted e-mail address, so
    rotating IPs does not buy extra guesses. Requests without an address are
    keyed on the client IP instead.
    """
    scope = 'credentials'

    def get_cache_key(self, request, view):
        email = str(request.data.get('email') or '').lower().strip()
        ident = f"email:{email}" if email else f"ip:{self.get_ident(request)}"
        return self.cache_format % {'scope': self.scope, 'ident': ident}

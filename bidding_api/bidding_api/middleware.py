import logging
from django.utils import timezone

logger = logging.getLogger('audit')

class UserActivityLoggingMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        user = getattr(request, 'user', None)
        actor = user if user is not None and user.is_authenticated else "Anonymous"
        timestamp = timezone.now().isoformat()

        logger.info(
            f"[{timestamp}] {actor} - {request.method} {request.get_full_path()} "
            f"- {response.status_code} - IP: {self.get_client_ip(request)}"
        )

        return response

    def get_client_ip(self, request):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')

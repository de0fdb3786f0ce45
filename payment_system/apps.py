import logging

from django.apps import AppConfig
from django.conf import settings


logger = logging.getLogger(__name__)


class PaymentSystemConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payment_system"
    verbose_name = "Payment System"

    def ready(self):
        """Wire tracing once Django is configured."""
        if not getattr(settings, "OTEL_ENABLED", False):
            return

        from infrastructure.observability import setup_tracing

        setup_tracing(
            service_name=getattr(settings, "OTEL_SERVICE_NAME", "bidmarket-backend"),
            console_export=getattr(settings, "OTEL_CONSOLE_EXPORT", False),
        )
        logger.info("[STARTUP] Tracing enabled for payment system")

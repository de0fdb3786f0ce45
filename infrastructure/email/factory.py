"""
Builds the mail sender named by ``INFRASTRUCTURE["EMAIL_BACKEND_TYPE"]``.
"""

import logging
from typing import Callable, Dict, Literal

from django.conf import settings

from .interface import EmailServiceInterface
from .mock_service import MockEmailService
from .smtp_service import SMTPEmailService


logger = logging.getLogger(__name__)

EmailBackend = Literal["smtp", "mock"]

_BACKENDS: Dict[str, Callable[[], EmailServiceInterface]] = {
    "smtp": SMTPEmailService,
    "mock": MockEmailService,
}


class EmailFactory:
    @staticmethod
    def create(backend: EmailBackend | None = None) -> EmailServiceInterface:
        """
        Return a new sender for ``backend``, or for the configured backend
        when none is given. Unknown names raise ValueError.
        """
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("EMAIL_BACKEND_TYPE", "smtp")
        builder = _BACKENDS.get(backend_type)
        if builder is None:
            raise ValueError(f"Invalid email backend: {backend_type}. Must be one of {sorted(_BACKENDS)}")

        logger.info(f"Creating email service backend: {backend_type}")
        return builder()

from rest_framework.response import Response

from marketplace.services.base import ServiceResult, http_status_for


def error_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult with the status code of its error category."""
    return Response(
        {"error": result.error, "message": result.error_detail, "retryable": result.retryable},
        status=http_status_for(result.error),
    )

import logging

from django.http import JsonResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"


class JSONOnlyMiddleware:
    """
    Keep every /api/ response JSON.

    Django's own 404/405/500 pages are HTML; for API paths they are replaced
    with the same error envelope the views return.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        if not request.path.startswith(API_PREFIX) or response.status_code < 400:
            return response

        if response.get("Content-Type", "").startswith("application/json"):
            return response

        return JsonResponse(
            {
                "success": False,
                "error": {
                    "code": self._code_for(response.status_code),
                    "message": response.reason_phrase,
                },
            },
            status=response.status_code,
        )

    def process_exception(self, request, exception):
        if not request.path.startswith(API_PREFIX):
            return None
        logger.exception("Unhandled exception on %s %s", request.method, request.path)
        return JsonResponse(
            {"success": False, "error": {"code": "server_error", "message": "Error interno del servidor"}},
            status=500,
        )

    @staticmethod
    def _code_for(status: int) -> str:
        return {
            404: "not_found",
            405: "method_not_allowed",
            401: "authentication_failed",
            403: "permission_denied",
        }.get(status, "server_error" if status >= 500 else "error")

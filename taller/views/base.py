import json
import logging

from django.http import JsonResponse
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django.utils.decorators import method_decorator

from taller.models import Usuario
from taller.services import (
    ValidationError, NotFoundError, BusinessRuleError, InsufficientStockError,
    AuthenticationError, PermissionDeniedError, ServiceError,
    AuthService, to_int,
)

logger = logging.getLogger(__name__)

ADMIN_ROLES = (Usuario.Rol.ADMIN, Usuario.Rol.RECEPCIONISTA)


def error_response(message: str, code: str = "error", status: int = 400, details: dict = None):
    data = {"success": False, "error": {"code": code, "message": message}}
    if details:
        data["error"]["details"] = details
    return JsonResponse(data, status=status)


def handle_service_error(e: Exception):
    if isinstance(e, ValidationError):
        return error_response(e.message, "validation_error", 400, {"field": e.field})
    elif isinstance(e, NotFoundError):
        return error_response(e.message, "not_found", 404, e.details)
    elif isinstance(e, InsufficientStockError):
        return error_response(e.message, "insufficient_stock", 400, e.details)
    elif isinstance(e, BusinessRuleError):
        return error_response(e.message, "business_rule", 400, e.details)
    elif isinstance(e, AuthenticationError):
        return error_response(e.message, "authentication_failed", 401)
    elif isinstance(e, PermissionDeniedError):
        return error_response(e.message, "permission_denied", 403)
    elif isinstance(e, ServiceError):
        return error_response(e.message, e.code.lower(), 400, e.details)
    else:
        logger.exception("Unhandled error in API view")
        return error_response("Error interno del servidor", "server_error", 500)


class BaseApiView(View):
    """
    JSON API view with bearer token authentication.

    Set public = True to skip authentication and allowed_roles to restrict
    the view to some Usuario roles. The authenticated user is exposed as
    request.usuario.
    """

    public = False
    allowed_roles = None

    @method_decorator(csrf_exempt)
    def dispatch(self, request, *args, **kwargs):
        request.usuario = None
        if not self.public:
            try:
                request.usuario = self.authenticate(request)
                if self.allowed_roles:
                    AuthService.check_role(request.usuario, self.allowed_roles)
            except ServiceError as e:
                return handle_service_error(e)
        return super().dispatch(request, *args, **kwargs)

    def authenticate(self, request):
        token = AuthService.extract_token(request.headers.get("Authorization"))
        if not token:
            raise AuthenticationError("Token de autenticación requerido")
        return AuthService.get_usuario_from_token(token)

    def get_json_body(self, request):
        if not request.body:
            return {}
        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("El cuerpo de la petición no es JSON válido")
        if not isinstance(data, dict):
            raise ValidationError("El cuerpo de la petición debe ser un objeto JSON")
        return data

    def get_update_body(self, request, *path_keys):
        """JSON body minus keys the URL already supplies."""
        data = self.get_json_body(request)
        for key in path_keys:
            data.pop(key, None)
        return data

    def require(self, data: dict, *fields):
        missing = [f for f in fields if data.get(f) in (None, "")]
        if missing:
            raise ValidationError(
                f"Campos requeridos: {', '.join(missing)}", missing[0]
            )

    def get_int_param(self, request, name: str, default=None):
        return to_int(request.GET.get(name), name, default)

    def get_bool_param(self, request, name: str, default=None):
        value = request.GET.get(name)
        if value is None or value == "":
            return default
        return value.lower() in ("true", "1", "yes", "si")

    def get_page(self, request, default_per_page: int = 20):
        return (
            self.get_int_param(request, "page", 1),
            self.get_int_param(request, "per_page", default_per_page),
        )

    def success(self, data: dict, status: int = 200):
        return JsonResponse({"success": True, **data}, status=status)

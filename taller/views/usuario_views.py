from taller.models import Usuario
from taller.services import UsuarioService, PermissionDeniedError
from taller.views.base import BaseApiView, handle_service_error, ADMIN_ROLES


class UsuarioListView(BaseApiView):
    """GET/POST /api/usuarios/"""

    allowed_roles = ADMIN_ROLES

    def get(self, request):
        try:
            page, per_page = self.get_page(request)
            result = UsuarioService.list(
                page=page,
                per_page=per_page,
                search=request.GET.get("search"),
                rol=request.GET.get("rol"),
                activo=self.get_bool_param(request, "activo"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "username", "email", "password", "nombre_completo", "rol")
            result = UsuarioService.create(
                username=data["username"],
                email=data["email"],
                password=data["password"],
                nombre_completo=data["nombre_completo"],
                rol=data["rol"],
                activo=data.get("activo", True),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class UsuarioDetailView(BaseApiView):
    """GET/PUT/DELETE /api/usuarios/<id>/"""

    allowed_roles = ADMIN_ROLES

    def get(self, request, usuario_id):
        try:
            return self.success(UsuarioService.get(usuario_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, usuario_id):
        try:
            data = self.get_update_body(request, "usuario_id")
            return self.success(UsuarioService.update(usuario_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, usuario_id):
        try:
            if self.get_bool_param(request, "hard", False):
                result = UsuarioService.hard_delete(usuario_id)
            else:
                result = UsuarioService.soft_delete(usuario_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class UsuarioActivoView(BaseApiView):
    """PATCH /api/usuarios/<id>/activo/"""

    allowed_roles = ADMIN_ROLES

    def patch(self, request, usuario_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "activo")
            return self.success(UsuarioService.set_activo(usuario_id, data["activo"]))
        except Exception as e:
            return handle_service_error(e)


class UsuarioPasswordView(BaseApiView):
    """POST /api/usuarios/<id>/password/ - own password, or any as ADMIN"""

    def post(self, request, usuario_id):
        try:
            if request.usuario.id != usuario_id and request.usuario.rol != Usuario.Rol.ADMIN:
                raise PermissionDeniedError("Solo puede cambiar su propia contraseña")
            data = self.get_json_body(request)
            self.require(data, "password_nuevo")
            result = UsuarioService.change_password(
                usuario_id, data.get("password_actual"), data["password_nuevo"]
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class MecanicoListView(BaseApiView):
    """GET /api/usuarios/mecanicos/"""

    def get(self, request):
        try:
            return self.success(UsuarioService.list_mecanicos())
        except Exception as e:
            return handle_service_error(e)


class UsuarioStatsView(BaseApiView):
    allowed_roles = ADMIN_ROLES

    def get(self, request):
        try:
            return self.success(UsuarioService.stats())
        except Exception as e:
            return handle_service_error(e)

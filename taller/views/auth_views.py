from taller.services import AuthService, AuthenticationError
from taller.views.base import BaseApiView, handle_service_error


class LoginView(BaseApiView):
    """POST /api/auth/login/"""

    public = True

    def post(self, request):
        try:
            data = self.get_json_body(request)
            result = AuthService.login(data.get("username"), data.get("password"))
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class LogoutView(BaseApiView):
    """POST /api/auth/logout/"""

    public = True

    def post(self, request):
        try:
            return self.success(AuthService.logout())
        except Exception as e:
            return handle_service_error(e)


class ValidateTokenView(BaseApiView):
    """GET /api/auth/validate/"""

    public = True

    def get(self, request):
        try:
            token = AuthService.extract_token(request.headers.get("Authorization"))
            if not token:
                raise AuthenticationError("Token de autenticación requerido")
            return self.success(AuthService.validate(token))
        except Exception as e:
            return handle_service_error(e)


class MeView(BaseApiView):
    """GET /api/auth/me/"""

    def get(self, request):
        try:
            return self.success(AuthService.me(request.usuario))
        except Exception as e:
            return handle_service_error(e)

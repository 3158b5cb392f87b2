import logging
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Dict, Any

import jwt
from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from taller.models import Usuario
from taller.services.base_service import (
    success_response, AuthenticationError, PermissionDeniedError,
)
from taller.services.usuario_service import UsuarioService

logger = logging.getLogger(__name__)


class AuthService:
    TOKEN_TYPE = 'Bearer'

    @classmethod
    def _secret(cls):
        return getattr(settings, 'JWT_SECRET_KEY', settings.SECRET_KEY)

    @classmethod
    def _algorithm(cls):
        return getattr(settings, 'JWT_ALGORITHM', 'HS256')

    @classmethod
    def _expiry(cls):
        return timedelta(hours=getattr(settings, 'JWT_EXPIRATION_HOURS', 24))

    @classmethod
    def generate_token(cls, usuario: Usuario) -> str:
        now = datetime.now(dt_timezone.utc)
        payload = {
            'sub': usuario.username,
            'rol': usuario.rol,
            'idUsuario': usuario.id,
            'iat': now,
            'exp': now + cls._expiry(),
        }
        return jwt.encode(payload, cls._secret(), algorithm=cls._algorithm())

    @classmethod
    def decode_token(cls, token: str) -> Dict[str, Any]:
        if not token:
            raise AuthenticationError("Token no proporcionado")
        try:
            return jwt.decode(token, cls._secret(), algorithms=[cls._algorithm()])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expirado")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Token inválido")

    @classmethod
    def get_usuario_from_token(cls, token: str) -> Usuario:
        payload = cls.decode_token(token)
        usuario = Usuario.objects.filter(username=payload.get('sub'), activo=True).first()
        if not usuario:
            raise AuthenticationError("Usuario no encontrado o inactivo")
        return usuario

    @classmethod
    def extract_token(cls, authorization: str) -> str:
        prefix = f"{cls.TOKEN_TYPE} "
        if authorization and authorization.startswith(prefix):
            return authorization[len(prefix):].strip()
        return ""

    @classmethod
    def login(cls, username: str, password: str) -> Dict[str, Any]:
        if not username or not password:
            raise AuthenticationError("Usuario y contraseña son obligatorios")

        usuario = Usuario.objects.filter(
            Q(username=username) | Q(email__iexact=username),
            activo=True
        ).first()

        if not usuario or not usuario.check_password(password):
            logger.warning("Intento de login fallido para '%s'", username)
            raise AuthenticationError("Credenciales inválidas")

        usuario.ultimo_login = timezone.now()
        usuario.save(update_fields=['ultimo_login'])

        token = cls.generate_token(usuario)
        logger.info("Login exitoso: %s", usuario.username)

        return success_response({
            "token": token,
            "type": cls.TOKEN_TYPE,
            "usuario": UsuarioService.serialize(usuario),
        }, "Login exitoso")

    @classmethod
    def logout(cls) -> Dict[str, Any]:
        return success_response(None, "Logout exitoso. El token debe ser eliminado del cliente.")

    @classmethod
    def validate(cls, token: str) -> Dict[str, Any]:
        usuario = cls.get_usuario_from_token(token)
        return success_response(
            {"valid": True, "username": usuario.username, "rol": usuario.rol},
            f"Token válido para usuario: {usuario.username}"
        )

    @classmethod
    def me(cls, usuario: Usuario) -> Dict[str, Any]:
        return success_response({"usuario": UsuarioService.serialize(usuario)})

    @classmethod
    def check_role(cls, usuario: Usuario, allowed_roles) -> None:
        if allowed_roles and usuario.rol not in allowed_roles:
            raise PermissionDeniedError()

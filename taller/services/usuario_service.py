import logging
from typing import Dict, Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import Q, Count

from taller.models import Usuario
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError,
    require_text, validate_choice, to_bool,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class UsuarioService(BaseService):
    model = Usuario
    resource_name = "Usuario"

    @classmethod
    def serialize(cls, usuario: Usuario) -> Dict[str, Any]:
        return {
            "id": usuario.id,
            "username": usuario.username,
            "email": usuario.email,
            "nombre_completo": usuario.nombre_completo,
            "rol": usuario.rol,
            "rol_display": usuario.get_rol_display(),
            "activo": usuario.activo,
            "ultimo_login": usuario.ultimo_login.isoformat() if usuario.ultimo_login else None,
            "created_at": usuario.created_at.isoformat(),
            "updated_at": usuario.updated_at.isoformat(),
        }

    @classmethod
    def serialize_brief(cls, usuario: Usuario) -> Dict[str, Any]:
        return {
            "id": usuario.id,
            "username": usuario.username,
            "nombre_completo": usuario.nombre_completo,
            "rol": usuario.rol,
        }

    @classmethod
    def _validate_email(cls, email: str) -> str:
        email = require_text(email, "email", 100)
        try:
            validate_email(email)
        except DjangoValidationError:
            raise ValidationError(f"Email inválido: {email}", "email")
        return email

    @classmethod
    def _validate_password(cls, password: str) -> str:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres",
                "password"
            )
        return password

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             search: str = None,
             rol: str = None,
             activo: bool = None) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        if activo is not None:
            queryset = queryset.filter(activo=activo)

        if rol:
            validate_choice(rol, Usuario.Rol.choices, "rol")
            queryset = queryset.filter(rol=rol)

        if search:
            queryset = queryset.filter(
                Q(username__icontains=search) |
                Q(email__icontains=search) |
                Q(nombre_completo__icontains=search)
            )

        items, pagination = paginate_queryset(queryset.order_by("username"), page, per_page)

        return success_response({
            "items": [cls.serialize(u) for u in items],
            "pagination": pagination,
            "filters": {
                "roles": [{"value": c[0], "label": c[1]} for c in Usuario.Rol.choices]
            }
        })

    @classmethod
    def get(cls, usuario_id: int) -> Dict[str, Any]:
        usuario = cls.get_or_404(usuario_id)
        return success_response({"usuario": cls.serialize(usuario)})

    @classmethod
    def get_by_username(cls, username: str) -> Dict[str, Any]:
        usuario = cls.model.objects.filter(username=username).first()
        if not usuario:
            raise NotFoundError("Usuario", username)
        return success_response({"usuario": cls.serialize(usuario)})

    @classmethod
    def list_mecanicos(cls) -> Dict[str, Any]:
        mecanicos = cls.model.objects.filter(
            rol=Usuario.Rol.MECANICO, activo=True
        ).order_by("nombre_completo")
        return success_response({
            "items": [cls.serialize_brief(m) for m in mecanicos],
            "count": len(mecanicos),
        })

    @classmethod
    @transaction.atomic
    def create(cls,
               username: str,
               email: str,
               password: str,
               nombre_completo: str,
               rol: str,
               activo: bool = True) -> Dict[str, Any]:
        username = require_text(username, "username", 50)
        email = cls._validate_email(email)
        nombre_completo = require_text(nombre_completo, "nombre_completo", 100)
        validate_choice(rol, Usuario.Rol.choices, "rol")
        cls._validate_password(password)

        if cls.model.objects.filter(username=username).exists():
            raise ValidationError(f"El username '{username}' ya está registrado", "username")
        if cls.model.objects.filter(email__iexact=email).exists():
            raise ValidationError(f"El email '{email}' ya está registrado", "email")

        usuario = cls.model(
            username=username,
            email=email,
            nombre_completo=nombre_completo,
            rol=rol,
            activo=to_bool(activo, "activo"),
        )
        usuario.set_password(password)
        usuario.save()

        logger.info("Usuario creado: %s (%s)", usuario.username, usuario.rol)
        return success_response({"usuario": cls.serialize(usuario)}, "Usuario creado")

    @classmethod
    @transaction.atomic
    def update(cls, usuario_id: int, **kwargs) -> Dict[str, Any]:
        usuario = cls.get_for_update(usuario_id)
        valid_fields = {"username", "email", "nombre_completo", "rol", "activo"}

        if "username" in kwargs:
            kwargs["username"] = require_text(kwargs["username"], "username", 50)
            if cls.model.objects.filter(username=kwargs["username"]).exclude(pk=usuario.pk).exists():
                raise ValidationError(
                    f"El username '{kwargs['username']}' ya está registrado", "username"
                )

        if "email" in kwargs:
            kwargs["email"] = cls._validate_email(kwargs["email"])
            if cls.model.objects.filter(email__iexact=kwargs["email"]).exclude(pk=usuario.pk).exists():
                raise ValidationError(f"El email '{kwargs['email']}' ya está registrado", "email")

        if "nombre_completo" in kwargs:
            kwargs["nombre_completo"] = require_text(kwargs["nombre_completo"], "nombre_completo", 100)

        if "rol" in kwargs:
            validate_choice(kwargs["rol"], Usuario.Rol.choices, "rol")

        if "activo" in kwargs:
            kwargs["activo"] = to_bool(kwargs["activo"], "activo")

        updated = []
        for field, value in kwargs.items():
            if field in valid_fields:
                setattr(usuario, field, value)
                updated.append(field)

        if kwargs.get("password"):
            usuario.set_password(cls._validate_password(kwargs["password"]))
            updated.append("password")

        if updated:
            usuario.save(update_fields=[
                "password_hash" if f == "password" else f for f in updated
            ] + ["updated_at"])

        return success_response(
            {"usuario": cls.serialize(usuario), "updated_fields": updated},
            "Usuario actualizado"
        )

    @classmethod
    @transaction.atomic
    def change_password(cls, usuario_id: int, password_actual: str, password_nuevo: str) -> Dict[str, Any]:
        usuario = cls.get_or_404(usuario_id)
        if not usuario.check_password(password_actual or ""):
            raise BusinessRuleError("La contraseña actual no es correcta", "password_mismatch")

        usuario.set_password(cls._validate_password(password_nuevo))
        usuario.save(update_fields=["password_hash", "updated_at"])

        logger.info("Contraseña actualizada para %s", usuario.username)
        return success_response({"id": usuario.id}, "Contraseña actualizada")

    @classmethod
    def check_hard_delete(cls, usuario: Usuario) -> None:
        if usuario.ordenes_creadas.exists():
            raise BusinessRuleError(
                "No se puede eliminar un usuario que ha creado órdenes de trabajo",
                "usuario_has_orders"
            )

    @classmethod
    def stats(cls) -> Dict[str, Any]:
        by_rol = {
            row["rol"]: row["total"]
            for row in cls.model.objects.values("rol").annotate(total=Count("id"))
        }
        return success_response({
            "total": cls.model.objects.count(),
            "activos": cls.model.objects.filter(activo=True).count(),
            "inactivos": cls.model.objects.filter(activo=False).count(),
            "por_rol": {rol: by_rol.get(rol, 0) for rol, _ in Usuario.Rol.choices},
        })

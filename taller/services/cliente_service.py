import logging
from typing import Dict, Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import Q, Count

from taller.models import Cliente
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError,
    require_text, clean_optional, to_bool,
)

logger = logging.getLogger(__name__)


class ClienteService(BaseService):
    model = Cliente
    resource_name = "Cliente"

    @classmethod
    def serialize(cls, cliente: Cliente, include_motos: bool = False) -> Dict[str, Any]:
        data = {
            "id": cliente.id,
            "nombre": cliente.nombre,
            "telefono": cliente.telefono,
            "email": cliente.email,
            "dni": cliente.dni,
            "direccion": cliente.direccion,
            "activo": cliente.activo,
            "created_at": cliente.created_at.isoformat(),
            "updated_at": cliente.updated_at.isoformat(),
        }

        if include_motos:
            data["motos"] = [
                {
                    "id": moto.id,
                    "placa": moto.placa,
                    "marca": moto.marca,
                    "modelo": moto.modelo,
                    "anio": moto.anio,
                    "activo": moto.activo,
                }
                for moto in cliente.motos.all()
            ]

        return data

    @classmethod
    def _clean_email(cls, email):
        email = clean_optional(email)
        if email:
            try:
                validate_email(email)
            except DjangoValidationError:
                raise ValidationError(f"Email inválido: {email}", "email")
        return email

    @classmethod
    def _check_unique(cls, field: str, value, label: str, exclude_id: int = None) -> None:
        if not value:
            return
        lookup = {f"{field}__iexact": value} if field == "email" else {field: value}
        queryset = cls.model.objects.filter(**lookup)
        if exclude_id:
            queryset = queryset.exclude(pk=exclude_id)
        if queryset.exists():
            raise ValidationError(f"Ya existe un cliente con {label} '{value}'", field)

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             search: str = None,
             activo: bool = None) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        if activo is not None:
            queryset = queryset.filter(activo=activo)

        if search:
            queryset = queryset.filter(
                Q(nombre__icontains=search) |
                Q(telefono__icontains=search) |
                Q(email__icontains=search) |
                Q(dni__icontains=search)
            )

        items, pagination = paginate_queryset(queryset.order_by("nombre"), page, per_page)

        return success_response({
            "items": [cls.serialize(c) for c in items],
            "pagination": pagination,
        })

    @classmethod
    def get(cls, cliente_id: int) -> Dict[str, Any]:
        cliente = cls.get_or_404(cliente_id)
        return success_response({"cliente": cls.serialize(cliente, include_motos=True)})

    @classmethod
    def get_by_dni(cls, dni: str) -> Dict[str, Any]:
        cliente = cls.model.objects.filter(dni=dni).first()
        if not cliente:
            raise NotFoundError("Cliente con DNI", dni)
        return success_response({"cliente": cls.serialize(cliente, include_motos=True)})

    @classmethod
    def get_by_telefono(cls, telefono: str) -> Dict[str, Any]:
        cliente = cls.model.objects.filter(telefono=telefono).first()
        if not cliente:
            raise NotFoundError("Cliente con teléfono", telefono)
        return success_response({"cliente": cls.serialize(cliente, include_motos=True)})

    @classmethod
    @transaction.atomic
    def create(cls,
               nombre: str,
               telefono: str,
               email: str = None,
               dni: str = None,
               direccion: str = "",
               activo: bool = True) -> Dict[str, Any]:
        nombre = require_text(nombre, "nombre", 100)
        telefono = require_text(telefono, "telefono", 20)
        email = cls._clean_email(email)
        dni = clean_optional(dni)

        cls._check_unique("telefono", telefono, "teléfono")
        cls._check_unique("email", email, "email")
        cls._check_unique("dni", dni, "DNI")

        cliente = cls.model.objects.create(
            nombre=nombre,
            telefono=telefono,
            email=email,
            dni=dni,
            direccion=direccion or "",
            activo=to_bool(activo, "activo"),
        )

        logger.info("Cliente creado: %s (id=%s)", cliente.nombre, cliente.id)
        return success_response({"cliente": cls.serialize(cliente)}, "Cliente creado")

    @classmethod
    @transaction.atomic
    def update(cls, cliente_id: int, **kwargs) -> Dict[str, Any]:
        cliente = cls.get_for_update(cliente_id)
        valid_fields = {"nombre", "telefono", "email", "dni", "direccion", "activo"}

        if "nombre" in kwargs:
            kwargs["nombre"] = require_text(kwargs["nombre"], "nombre", 100)

        if "telefono" in kwargs:
            kwargs["telefono"] = require_text(kwargs["telefono"], "telefono", 20)
            cls._check_unique("telefono", kwargs["telefono"], "teléfono", cliente.pk)

        if "email" in kwargs:
            kwargs["email"] = cls._clean_email(kwargs["email"])
            cls._check_unique("email", kwargs["email"], "email", cliente.pk)

        if "dni" in kwargs:
            kwargs["dni"] = clean_optional(kwargs["dni"])
            cls._check_unique("dni", kwargs["dni"], "DNI", cliente.pk)

        if "direccion" in kwargs:
            kwargs["direccion"] = kwargs["direccion"] or ""

        if "activo" in kwargs:
            kwargs["activo"] = to_bool(kwargs["activo"], "activo")

        updated = []
        for field, value in kwargs.items():
            if field in valid_fields:
                setattr(cliente, field, value)
                updated.append(field)

        if updated:
            cliente.save(update_fields=updated + ["updated_at"])

        return success_response(
            {"cliente": cls.serialize(cliente), "updated_fields": updated},
            "Cliente actualizado"
        )

    @classmethod
    def update_contact(cls, cliente_id: int, telefono: str = None,
                       email: str = None, direccion: str = None) -> Dict[str, Any]:
        changes = {}
        if telefono is not None:
            changes["telefono"] = telefono
        if email is not None:
            changes["email"] = email
        if direccion is not None:
            changes["direccion"] = direccion
        if not changes:
            raise ValidationError("Debe indicar al menos un dato de contacto", "telefono")
        return cls.update(cliente_id, **changes)

    @classmethod
    def update_dni(cls, cliente_id: int, dni: str) -> Dict[str, Any]:
        return cls.update(cliente_id, dni=dni)

    @classmethod
    def check_hard_delete(cls, cliente: Cliente) -> None:
        if cliente.motos.exists():
            raise BusinessRuleError(
                "No se puede eliminar un cliente con motos registradas",
                "cliente_has_motos"
            )

    @classmethod
    def stats(cls) -> Dict[str, Any]:
        con_motos = cls.model.objects.annotate(
            num_motos=Count("motos")
        ).filter(num_motos__gt=0).count()
        return success_response({
            "total": cls.model.objects.count(),
            "activos": cls.model.objects.filter(activo=True).count(),
            "inactivos": cls.model.objects.filter(activo=False).count(),
            "con_motos": con_motos,
        })

import logging
from typing import Dict, Any

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from taller.models import Moto, Cliente
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError,
    require_text, clean_optional, to_int, to_bool,
)

logger = logging.getLogger(__name__)

MIN_ANIO = 1900


class MotoService(BaseService):
    model = Moto
    resource_name = "Moto"

    @classmethod
    def serialize(cls, moto: Moto) -> Dict[str, Any]:
        return {
            "id": moto.id,
            "cliente_id": moto.cliente_id,
            "cliente": {
                "id": moto.cliente.id,
                "nombre": moto.cliente.nombre,
                "telefono": moto.cliente.telefono,
            },
            "marca": moto.marca,
            "modelo": moto.modelo,
            "anio": moto.anio,
            "placa": moto.placa,
            "vin": moto.vin,
            "color": moto.color,
            "kilometraje": moto.kilometraje,
            "activo": moto.activo,
            "created_at": moto.created_at.isoformat(),
            "updated_at": moto.updated_at.isoformat(),
        }

    @classmethod
    def _max_anio(cls) -> int:
        return timezone.now().year + 1

    @classmethod
    def _validate_anio(cls, anio):
        anio = to_int(anio, "anio")
        if anio is not None and not (MIN_ANIO <= anio <= cls._max_anio()):
            raise ValidationError(
                f"El año debe estar entre {MIN_ANIO} y {cls._max_anio()}", "anio"
            )
        return anio

    @classmethod
    def _validate_kilometraje(cls, kilometraje) -> int:
        kilometraje = to_int(kilometraje, "kilometraje", 0)
        if kilometraje < 0:
            raise ValidationError("El kilometraje no puede ser negativo", "kilometraje")
        return kilometraje

    @classmethod
    def _get_cliente(cls, cliente_id) -> Cliente:
        cliente = Cliente.objects.filter(pk=to_int(cliente_id, "cliente_id")).first()
        if not cliente:
            raise NotFoundError("Cliente", cliente_id)
        if not cliente.activo:
            raise BusinessRuleError("El cliente está inactivo", "cliente_inactive")
        return cliente

    @classmethod
    def _check_unique(cls, field: str, value, exclude_id: int = None) -> None:
        if not value:
            return
        queryset = cls.model.objects.filter(**{f"{field}__iexact": value})
        if exclude_id:
            queryset = queryset.exclude(pk=exclude_id)
        if queryset.exists():
            raise ValidationError(f"Ya existe una moto con {field} '{value}'", field)

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             search: str = None,
             cliente_id: int = None,
             marca: str = None,
             anio_desde: int = None,
             anio_hasta: int = None,
             activo: bool = None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("cliente")

        if activo is not None:
            queryset = queryset.filter(activo=activo)

        if cliente_id:
            queryset = queryset.filter(cliente_id=cliente_id)

        if marca:
            queryset = queryset.filter(marca__iexact=marca)

        if anio_desde:
            queryset = queryset.filter(anio__gte=anio_desde)

        if anio_hasta:
            queryset = queryset.filter(anio__lte=anio_hasta)

        if search:
            queryset = queryset.filter(
                Q(placa__icontains=search) |
                Q(marca__icontains=search) |
                Q(modelo__icontains=search) |
                Q(vin__icontains=search) |
                Q(cliente__nombre__icontains=search)
            )

        items, pagination = paginate_queryset(queryset.order_by("placa"), page, per_page)

        return success_response({
            "items": [cls.serialize(m) for m in items],
            "pagination": pagination,
        })

    @classmethod
    def get(cls, moto_id: int) -> Dict[str, Any]:
        return success_response({"moto": cls.serialize(cls.get_or_404(moto_id))})

    @classmethod
    def get_by_placa(cls, placa: str) -> Dict[str, Any]:
        moto = cls.model.objects.select_related("cliente").filter(placa__iexact=placa).first()
        if not moto:
            raise NotFoundError("Moto con placa", placa)
        return success_response({"moto": cls.serialize(moto)})

    @classmethod
    @transaction.atomic
    def create(cls,
               cliente_id: int,
               marca: str,
               modelo: str,
               placa: str,
               anio: int = None,
               vin: str = None,
               color: str = "",
               kilometraje: int = 0,
               activo: bool = True) -> Dict[str, Any]:
        cliente = cls._get_cliente(cliente_id)
        marca = require_text(marca, "marca", 50)
        modelo = require_text(modelo, "modelo", 50)
        placa = require_text(placa, "placa", 20).upper()
        vin = clean_optional(vin)
        anio = cls._validate_anio(anio)
        kilometraje = cls._validate_kilometraje(kilometraje)

        cls._check_unique("placa", placa)
        cls._check_unique("vin", vin)

        moto = cls.model.objects.create(
            cliente=cliente,
            marca=marca,
            modelo=modelo,
            anio=anio,
            placa=placa,
            vin=vin,
            color=color or "",
            kilometraje=kilometraje,
            activo=to_bool(activo, "activo"),
        )

        logger.info("Moto registrada: %s (cliente=%s)", moto.placa, cliente.id)
        return success_response({"moto": cls.serialize(moto)}, "Moto registrada")

    @classmethod
    @transaction.atomic
    def update(cls, moto_id: int, **kwargs) -> Dict[str, Any]:
        moto = cls.get_for_update(moto_id)
        valid_fields = {"marca", "modelo", "anio", "placa", "vin", "color", "kilometraje", "activo"}

        reasignada = "cliente_id" in kwargs
        if reasignada:
            moto.cliente = cls._get_cliente(kwargs.pop("cliente_id"))

        if "marca" in kwargs:
            kwargs["marca"] = require_text(kwargs["marca"], "marca", 50)

        if "modelo" in kwargs:
            kwargs["modelo"] = require_text(kwargs["modelo"], "modelo", 50)

        if "placa" in kwargs:
            kwargs["placa"] = require_text(kwargs["placa"], "placa", 20).upper()
            cls._check_unique("placa", kwargs["placa"], moto.pk)

        if "vin" in kwargs:
            kwargs["vin"] = clean_optional(kwargs["vin"])
            cls._check_unique("vin", kwargs["vin"], moto.pk)

        if "anio" in kwargs:
            kwargs["anio"] = cls._validate_anio(kwargs["anio"])

        if "kilometraje" in kwargs:
            kwargs["kilometraje"] = cls._validate_kilometraje(kwargs["kilometraje"])

        if "color" in kwargs:
            kwargs["color"] = kwargs["color"] or ""

        if "activo" in kwargs:
            kwargs["activo"] = to_bool(kwargs["activo"], "activo")

        updated = []
        for field, value in kwargs.items():
            if field in valid_fields:
                setattr(moto, field, value)
                updated.append(field)

        if reasignada:
            updated.append("cliente_id")
        moto.save(update_fields=updated + ["updated_at"])

        return success_response(
            {"moto": cls.serialize(moto), "updated_fields": updated},
            "Moto actualizada"
        )

    @classmethod
    @transaction.atomic
    def update_kilometraje(cls, moto_id: int, kilometraje: int) -> Dict[str, Any]:
        moto = cls.get_or_404(moto_id)
        kilometraje = cls._validate_kilometraje(kilometraje)

        if kilometraje < moto.kilometraje:
            raise BusinessRuleError(
                f"El kilometraje no puede disminuir (actual: {moto.kilometraje})",
                "kilometraje_decrease"
            )

        moto.kilometraje = kilometraje
        moto.save(update_fields=["kilometraje", "updated_at"])
        return success_response({"moto": cls.serialize(moto)}, "Kilometraje actualizado")

    @classmethod
    def update_placa(cls, moto_id: int, placa: str) -> Dict[str, Any]:
        return cls.update(moto_id, placa=placa)

    @classmethod
    def update_vin(cls, moto_id: int, vin: str) -> Dict[str, Any]:
        return cls.update(moto_id, vin=vin)

    @classmethod
    def update_color(cls, moto_id: int, color: str) -> Dict[str, Any]:
        return cls.update(moto_id, color=color)

    @classmethod
    @transaction.atomic
    def transfer_cliente(cls, moto_id: int, cliente_id: int) -> Dict[str, Any]:
        moto = cls.get_or_404(moto_id)
        anterior = moto.cliente_id
        moto.cliente = cls._get_cliente(cliente_id)
        moto.save(update_fields=["cliente", "updated_at"])

        logger.info("Moto %s transferida del cliente %s al %s", moto.placa, anterior, moto.cliente_id)
        return success_response({"moto": cls.serialize(moto)}, "Moto transferida")

    @classmethod
    def check_hard_delete(cls, moto: Moto) -> None:
        if moto.ordenes.exists():
            raise BusinessRuleError(
                "No se puede eliminar una moto con órdenes de trabajo",
                "moto_has_orders"
            )

    @classmethod
    def marcas(cls) -> Dict[str, Any]:
        marcas = list(
            cls.get_active().order_by("marca").values_list("marca", flat=True).distinct()
        )
        return success_response({"marcas": marcas})

import logging
from decimal import Decimal
from typing import Dict, Any

from django.db import transaction
from django.db.models import Sum

from taller.models import DetalleOrden, Servicio, OrdenTrabajo
from taller.services.base_service import (
    BaseService, success_response,
    ValidationError, NotFoundError, BusinessRuleError,
    require_decimal, to_int,
)
from taller.services.orden_service import OrdenTrabajoService

logger = logging.getLogger(__name__)


class DetalleOrdenService(BaseService):
    model = DetalleOrden
    resource_name = "Detalle de orden"

    @classmethod
    def serialize(cls, detalle: DetalleOrden) -> Dict[str, Any]:
        return {
            "id": detalle.id,
            "orden_id": detalle.orden_id,
            "servicio_id": detalle.servicio_id,
            "servicio": {
                "id": detalle.servicio.id,
                "codigo": detalle.servicio.codigo,
                "nombre": detalle.servicio.nombre,
                "categoria": detalle.servicio.categoria,
            },
            "precio_aplicado": str(detalle.precio_aplicado),
            "observaciones": detalle.observaciones,
            "created_at": detalle.created_at.isoformat(),
        }

    @classmethod
    def _validate_precio(cls, precio) -> Decimal:
        precio = require_decimal(precio, "precio_aplicado")
        if precio < 0:
            raise ValidationError("El precio aplicado no puede ser negativo", "precio_aplicado")
        return precio

    @classmethod
    def list(cls, orden_id: int = None, servicio_id: int = None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("servicio")

        if orden_id:
            queryset = queryset.filter(orden_id=orden_id)

        if servicio_id:
            queryset = queryset.filter(servicio_id=servicio_id)

        detalles = list(queryset.order_by("created_at", "id"))
        total = sum((d.precio_aplicado for d in detalles), Decimal("0"))

        return success_response({
            "items": [cls.serialize(d) for d in detalles],
            "count": len(detalles),
            "total": str(total),
        })

    @classmethod
    def get(cls, detalle_id: int) -> Dict[str, Any]:
        return success_response({"detalle": cls.serialize(cls.get_or_404(detalle_id))})

    @classmethod
    def total_por_orden(cls, orden_id: int) -> Decimal:
        return cls.model.objects.filter(
            orden_id=orden_id
        ).aggregate(total=Sum("precio_aplicado"))["total"] or Decimal("0")

    @classmethod
    def _add(cls, orden: OrdenTrabajo, servicio_id, precio_aplicado=None,
             observaciones: str = "") -> DetalleOrden:
        servicio = Servicio.objects.filter(pk=to_int(servicio_id, "servicio_id")).first()
        if not servicio:
            raise NotFoundError("Servicio", servicio_id)
        if not servicio.activo:
            raise BusinessRuleError(f"El servicio {servicio.codigo} está inactivo", "servicio_inactive")

        if cls.model.objects.filter(orden=orden, servicio=servicio).exists():
            raise ValidationError(
                f"El servicio {servicio.codigo} ya está agregado a la orden {orden.numero_orden}",
                "servicio_id"
            )

        precio = servicio.precio_base if precio_aplicado in (None, "") else cls._validate_precio(precio_aplicado)

        return cls.model.objects.create(
            orden=orden,
            servicio=servicio,
            precio_aplicado=precio,
            observaciones=observaciones or "",
        )

    @classmethod
    @transaction.atomic
    def add_servicio(cls, orden_id: int, servicio_id: int,
                     precio_aplicado=None, observaciones: str = "") -> Dict[str, Any]:
        orden = OrdenTrabajoService.lock(orden_id)
        OrdenTrabajoService.ensure_editable(orden)

        detalle = cls._add(orden, servicio_id, precio_aplicado, observaciones)
        OrdenTrabajoService.refresh_totals(orden)

        logger.info("Servicio %s agregado a orden %s", detalle.servicio.codigo, orden.numero_orden)
        return success_response({
            "detalle": cls.serialize(detalle),
            "total_orden": str(orden.total_orden),
        }, "Servicio agregado a la orden")

    @classmethod
    @transaction.atomic
    def update(cls, detalle_id: int, **kwargs) -> Dict[str, Any]:
        detalle = cls.get_or_404(detalle_id)
        orden = OrdenTrabajoService.lock(detalle.orden_id)
        detalle = cls.get_or_404(detalle_id)
        OrdenTrabajoService.ensure_editable(orden)

        updated = []
        if "precio_aplicado" in kwargs:
            detalle.precio_aplicado = cls._validate_precio(kwargs["precio_aplicado"])
            updated.append("precio_aplicado")

        if "observaciones" in kwargs:
            detalle.observaciones = kwargs["observaciones"] or ""
            updated.append("observaciones")

        if updated:
            detalle.save(update_fields=updated)
            OrdenTrabajoService.refresh_totals(orden)

        return success_response({
            "detalle": cls.serialize(detalle),
            "updated_fields": updated,
            "total_orden": str(orden.total_orden),
        }, "Detalle actualizado")

    @classmethod
    @transaction.atomic
    def remove(cls, detalle_id: int) -> Dict[str, Any]:
        detalle = cls.get_or_404(detalle_id)
        orden = OrdenTrabajoService.lock(detalle.orden_id)
        detalle = cls.get_or_404(detalle_id)
        OrdenTrabajoService.ensure_editable(orden)

        detalle.delete()
        OrdenTrabajoService.refresh_totals(orden)

        return success_response({
            "id": detalle_id,
            "total_orden": str(orden.total_orden),
        }, "Servicio removido de la orden")

    @classmethod
    @transaction.atomic
    def clone_to_orden(cls, orden_origen_id: int, orden_destino_id: int) -> Dict[str, Any]:
        if to_int(orden_origen_id, "orden_origen_id") == to_int(orden_destino_id, "orden_destino_id"):
            raise ValidationError("La orden de origen y destino deben ser distintas", "orden_destino_id")

        origen = OrdenTrabajoService.get_or_404(orden_origen_id)
        destino = OrdenTrabajoService.lock(orden_destino_id)
        OrdenTrabajoService.ensure_editable(destino)

        existentes = set(destino.detalles.values_list("servicio_id", flat=True))
        creados = []
        for detalle in origen.detalles.select_related("servicio"):
            if detalle.servicio_id in existentes:
                continue
            creados.append(cls.model.objects.create(
                orden=destino,
                servicio=detalle.servicio,
                precio_aplicado=detalle.precio_aplicado,
                observaciones=detalle.observaciones,
            ))

        OrdenTrabajoService.refresh_totals(destino)

        return success_response({
            "items": [cls.serialize(d) for d in creados],
            "cloned_count": len(creados),
            "total_orden": str(destino.total_orden),
        }, f"Clonados {len(creados)} servicio(s)")

    @classmethod
    @transaction.atomic
    def clear_orden(cls, orden_id: int) -> Dict[str, Any]:
        orden = OrdenTrabajoService.lock(orden_id)
        OrdenTrabajoService.ensure_editable(orden)

        deleted, _ = orden.detalles.all().delete()
        OrdenTrabajoService.refresh_totals(orden)

        return success_response({
            "deleted_count": deleted,
            "total_orden": str(orden.total_orden),
        }, "Servicios de la orden eliminados")

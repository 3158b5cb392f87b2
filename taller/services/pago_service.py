import logging
from decimal import Decimal
from typing import Dict, Any

from django.db import transaction
from django.db.models import Sum, Count
from django.db.models.functions import TruncDate

from taller.models import Pago, OrdenTrabajo
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, BusinessRuleError,
    require_decimal, validate_choice, parse_date, parse_datetime, to_int,
)
from taller.services.orden_service import OrdenTrabajoService

logger = logging.getLogger(__name__)

MONTO_MINIMO = Decimal("0.01")


class PagoService(BaseService):
    model = Pago
    resource_name = "Pago"

    @classmethod
    def serialize(cls, pago: Pago) -> Dict[str, Any]:
        return {
            "id": pago.id,
            "orden_id": pago.orden_id,
            "numero_orden": pago.orden.numero_orden,
            "monto": str(pago.monto),
            "fecha_pago": pago.fecha_pago.isoformat(),
            "metodo": pago.metodo,
            "metodo_display": pago.get_metodo_display(),
            "referencia": pago.referencia,
            "observaciones": pago.observaciones,
            "created_at": pago.created_at.isoformat(),
        }

    @classmethod
    def _validate_monto(cls, monto) -> Decimal:
        monto = require_decimal(monto, "monto")
        if monto < MONTO_MINIMO:
            raise ValidationError(f"El monto debe ser al menos {MONTO_MINIMO}", "monto")
        return monto

    @classmethod
    def _check_saldo(cls, orden: OrdenTrabajo, monto: Decimal, exclude_id: int = None) -> None:
        pagos = orden.pagos.all()
        if exclude_id:
            pagos = pagos.exclude(pk=exclude_id)
        pagado = pagos.aggregate(total=Sum("monto"))["total"] or Decimal("0")
        saldo = orden.total_orden - pagado
        if monto > saldo:
            raise BusinessRuleError(
                f"El monto {monto} excede el saldo pendiente de la orden ({max(saldo, Decimal('0'))})",
                "monto_exceeds_saldo"
            )

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             orden_id: int = None,
             metodo: str = None,
             referencia: str = None,
             monto_min=None,
             monto_max=None,
             fecha_desde=None,
             fecha_hasta=None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("orden")

        if orden_id:
            queryset = queryset.filter(orden_id=orden_id)

        if metodo:
            validate_choice(metodo, Pago.Metodo.choices, "metodo")
            queryset = queryset.filter(metodo=metodo)

        if referencia:
            queryset = queryset.filter(referencia__icontains=referencia)

        if monto_min not in (None, ""):
            queryset = queryset.filter(monto__gte=require_decimal(monto_min, "monto_min"))

        if monto_max not in (None, ""):
            queryset = queryset.filter(monto__lte=require_decimal(monto_max, "monto_max"))

        desde = parse_date(fecha_desde, "fecha_desde")
        if desde:
            queryset = queryset.filter(fecha_pago__date__gte=desde)

        hasta = parse_date(fecha_hasta, "fecha_hasta")
        if hasta:
            queryset = queryset.filter(fecha_pago__date__lte=hasta)

        total = queryset.aggregate(total=Sum("monto"))["total"] or Decimal("0")
        items, pagination = paginate_queryset(queryset.order_by("-fecha_pago", "-id"), page, per_page)

        return success_response({
            "items": [cls.serialize(p) for p in items],
            "pagination": pagination,
            "total_monto": str(total),
            "filters": {
                "metodos": [{"value": c[0], "label": c[1]} for c in Pago.Metodo.choices]
            }
        })

    @classmethod
    def get(cls, pago_id: int) -> Dict[str, Any]:
        return success_response({"pago": cls.serialize(cls.get_or_404(pago_id))})

    @classmethod
    @transaction.atomic
    def create(cls,
               orden_id: int,
               monto,
               metodo: str,
               referencia: str = "",
               observaciones: str = "",
               fecha_pago=None) -> Dict[str, Any]:
        orden = OrdenTrabajoService.lock(to_int(orden_id, "orden_id"))
        if orden.estado == OrdenTrabajo.Estado.CANCELADA:
            raise BusinessRuleError("No se pueden registrar pagos en una orden cancelada", "orden_cancelada")

        monto = cls._validate_monto(monto)
        validate_choice(metodo, Pago.Metodo.choices, "metodo")
        cls._check_saldo(orden, monto)

        kwargs = {}
        fecha = parse_datetime(fecha_pago, "fecha_pago")
        if fecha:
            kwargs["fecha_pago"] = fecha

        pago = cls.model.objects.create(
            orden=orden,
            monto=monto,
            metodo=metodo,
            referencia=(referencia or "")[:100],
            observaciones=observaciones or "",
            **kwargs
        )
        OrdenTrabajoService.refresh_totals(orden)

        logger.info(
            "Pago registrado: %s %s en orden %s (estado_pago=%s)",
            pago.monto, pago.metodo, orden.numero_orden, orden.estado_pago
        )
        return success_response({
            "pago": cls.serialize(pago),
            "estado_pago": orden.estado_pago,
            "saldo": str(cls._saldo(orden)),
        }, "Pago registrado")

    @classmethod
    @transaction.atomic
    def update(cls, pago_id: int, **kwargs) -> Dict[str, Any]:
        pago = cls.get_or_404(pago_id)
        orden = OrdenTrabajoService.lock(pago.orden_id)
        pago = cls.get_or_404(pago_id)
        updated = []

        if "monto" in kwargs:
            monto = cls._validate_monto(kwargs["monto"])
            cls._check_saldo(orden, monto, exclude_id=pago.pk)
            pago.monto = monto
            updated.append("monto")

        if "metodo" in kwargs:
            pago.metodo = validate_choice(kwargs["metodo"], Pago.Metodo.choices, "metodo")
            updated.append("metodo")

        if "referencia" in kwargs:
            pago.referencia = (kwargs["referencia"] or "")[:100]
            updated.append("referencia")

        if "observaciones" in kwargs:
            pago.observaciones = kwargs["observaciones"] or ""
            updated.append("observaciones")

        if "fecha_pago" in kwargs:
            fecha = parse_datetime(kwargs["fecha_pago"], "fecha_pago")
            if fecha:
                pago.fecha_pago = fecha
                updated.append("fecha_pago")

        if updated:
            pago.save(update_fields=updated)
        OrdenTrabajoService.refresh_totals(orden)

        return success_response({
            "pago": cls.serialize(pago),
            "estado_pago": orden.estado_pago,
        }, "Pago actualizado")

    @classmethod
    @transaction.atomic
    def delete(cls, pago_id: int) -> Dict[str, Any]:
        pago = cls.get_or_404(pago_id)
        orden = OrdenTrabajoService.lock(pago.orden_id)
        pago = cls.get_or_404(pago_id)
        pago.delete()
        OrdenTrabajoService.refresh_totals(orden)

        logger.info("Pago %s eliminado de la orden %s", pago_id, orden.numero_orden)
        return success_response({"id": pago_id, "estado_pago": orden.estado_pago}, "Pago eliminado")

    @classmethod
    def _saldo(cls, orden: OrdenTrabajo) -> Decimal:
        return max(orden.total_orden - OrdenTrabajoService.total_pagado(orden), Decimal("0"))

    @classmethod
    def total_pagado(cls, orden_id: int) -> Decimal:
        orden = OrdenTrabajoService.get_or_404(orden_id)
        return OrdenTrabajoService.total_pagado(orden)

    @classmethod
    def saldo(cls, orden_id: int) -> Decimal:
        return cls._saldo(OrdenTrabajoService.get_or_404(orden_id))

    @classmethod
    def resumen_orden(cls, orden_id: int) -> Dict[str, Any]:
        orden = OrdenTrabajoService.get_or_404(orden_id)
        pagado = OrdenTrabajoService.total_pagado(orden)
        return success_response({
            "orden_id": orden.id,
            "numero_orden": orden.numero_orden,
            "total_orden": str(orden.total_orden),
            "total_pagado": str(pagado),
            "saldo": str(max(orden.total_orden - pagado, Decimal("0"))),
            "estado_pago": orden.estado_pago,
            "cantidad_pagos": orden.pagos.count(),
        })

    @classmethod
    def _filter_range(cls, fecha_desde=None, fecha_hasta=None):
        queryset = cls.model.objects.all()
        desde = parse_date(fecha_desde, "fecha_desde")
        if desde:
            queryset = queryset.filter(fecha_pago__date__gte=desde)
        hasta = parse_date(fecha_hasta, "fecha_hasta")
        if hasta:
            queryset = queryset.filter(fecha_pago__date__lte=hasta)
        return queryset

    @classmethod
    def resumen_por_metodo(cls, fecha_desde=None, fecha_hasta=None) -> Dict[str, Any]:
        rows = cls._filter_range(fecha_desde, fecha_hasta).values("metodo").annotate(
            cantidad=Count("id"), total=Sum("monto")
        ).order_by("metodo")
        items = [
            {"metodo": r["metodo"], "cantidad": r["cantidad"], "total": str(r["total"])}
            for r in rows
        ]
        return success_response({
            "items": items,
            "total": str(sum((r["total"] for r in rows), Decimal("0"))),
        })

    @classmethod
    def resumen_diario(cls, fecha_desde=None, fecha_hasta=None) -> Dict[str, Any]:
        rows = cls._filter_range(fecha_desde, fecha_hasta).annotate(
            dia=TruncDate("fecha_pago")
        ).values("dia").annotate(
            cantidad=Count("id"), total=Sum("monto")
        ).order_by("dia")
        return success_response({
            "items": [
                {"fecha": r["dia"].isoformat(), "cantidad": r["cantidad"], "total": str(r["total"])}
                for r in rows
            ]
        })

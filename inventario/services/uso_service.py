import logging
from decimal import Decimal
from typing import Dict, Any, Optional, Tuple

from django.db import transaction
from django.db.models import Sum

from inventario.models import Repuesto, UsoRepuesto, RepuestoMovimiento
from inventario.services.movimiento_service import RepuestoMovimientoService
from taller.models import OrdenTrabajo, Usuario
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError,
    require_decimal, to_int,
)
from taller.services.orden_service import OrdenTrabajoService

logger = logging.getLogger(__name__)

Tipo = RepuestoMovimiento.TipoMovimiento


class UsoRepuestoService(BaseService):
    """
    Spare parts consumed by work orders.

    Every write keeps three things consistent inside one transaction: the
    uso row, the repuesto stock (with its movement) and the order totals.
    Locks are always taken orden first, then repuesto.
    """

    model = UsoRepuesto
    resource_name = "Uso de repuesto"

    @classmethod
    def serialize(cls, uso: UsoRepuesto) -> Dict[str, Any]:
        return {
            "id": uso.id,
            "orden_id": uso.orden_id,
            "numero_orden": uso.orden.numero_orden,
            "repuesto_id": uso.repuesto_id,
            "repuesto": {
                "id": uso.repuesto.id,
                "codigo": uso.repuesto.codigo,
                "nombre": uso.repuesto.nombre,
            },
            "cantidad": uso.cantidad,
            "precio_unitario": str(uso.precio_unitario),
            "subtotal": str(uso.subtotal),
            "created_at": uso.created_at.isoformat(),
        }

    @classmethod
    def get_or_404(cls, id: int) -> UsoRepuesto:
        uso = cls.model.objects.select_related("orden", "repuesto").filter(pk=id).first()
        if not uso:
            raise NotFoundError(cls.resource_name, id)
        return uso

    @classmethod
    def _validate_cantidad(cls, cantidad) -> int:
        cantidad = to_int(cantidad, "cantidad")
        if cantidad is None or cantidad < 1:
            raise ValidationError("La cantidad debe ser al menos 1", "cantidad")
        return cantidad

    @classmethod
    def _validate_precio(cls, precio) -> Decimal:
        precio = require_decimal(precio, "precio_unitario")
        if precio < 0:
            raise ValidationError("El precio unitario no puede ser negativo", "precio_unitario")
        return precio

    @classmethod
    def _lock_orden(cls, orden_id) -> OrdenTrabajo:
        orden = OrdenTrabajoService.lock(to_int(orden_id, "orden_id"))
        OrdenTrabajoService.ensure_editable(orden)
        return orden

    @classmethod
    def _lock_uso(cls, uso_id) -> Tuple[OrdenTrabajo, UsoRepuesto]:
        """Locks the owning orden, then re-reads the uso under that lock."""
        orden = cls._lock_orden(cls.get_or_404(uso_id).orden_id)
        uso = cls.model.objects.select_for_update().select_related(
            "orden", "repuesto"
        ).filter(pk=uso_id).first()
        if not uso:
            raise NotFoundError(cls.resource_name, uso_id)
        return orden, uso

    @classmethod
    def _consume(cls,
                 orden: OrdenTrabajo,
                 repuesto_id,
                 cantidad: int,
                 precio_unitario=None,
                 usuario: Optional[Usuario] = None) -> UsoRepuesto:
        repuesto = RepuestoMovimientoService.lock_repuesto(repuesto_id)
        if not repuesto.activo:
            raise BusinessRuleError(f"El repuesto {repuesto.codigo} está inactivo", "repuesto_inactive")

        RepuestoMovimientoService.apply(
            repuesto, Tipo.SALIDA, cantidad, f"Uso en orden: {orden.numero_orden}", usuario
        )

        precio = (
            repuesto.precio_unitario if precio_unitario in (None, "")
            else cls._validate_precio(precio_unitario)
        )

        uso = cls.model(orden=orden, repuesto=repuesto, cantidad=cantidad, precio_unitario=precio)
        uso.save()
        return uso

    @classmethod
    def _return_stock(cls, uso: UsoRepuesto, cantidad: int, usuario: Optional[Usuario] = None) -> None:
        repuesto = RepuestoMovimientoService.lock_repuesto(uso.repuesto_id)
        RepuestoMovimientoService.apply(
            repuesto, Tipo.DEVOLUCION, cantidad, f"Devolución de orden: {uso.orden.numero_orden}", usuario
        )

    # ==================== QUERIES ====================

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 50,
             orden_id: int = None,
             repuesto_id: int = None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("orden", "repuesto")

        if orden_id:
            queryset = queryset.filter(orden_id=orden_id)

        if repuesto_id:
            queryset = queryset.filter(repuesto_id=repuesto_id)

        total = queryset.aggregate(total=Sum("subtotal"))["total"] or Decimal("0")
        items, pagination = paginate_queryset(queryset.order_by("created_at", "id"), page, per_page)

        return success_response({
            "items": [cls.serialize(u) for u in items],
            "pagination": pagination,
            "total": str(total),
        })

    @classmethod
    def get(cls, uso_id: int) -> Dict[str, Any]:
        return success_response({"uso": cls.serialize(cls.get_or_404(uso_id))})

    @classmethod
    def total_por_orden(cls, orden_id: int) -> Decimal:
        return cls.model.objects.filter(
            orden_id=orden_id
        ).aggregate(total=Sum("subtotal"))["total"] or Decimal("0")

    @classmethod
    def cantidad_total_por_repuesto(cls, repuesto_id: int) -> int:
        return cls.model.objects.filter(
            repuesto_id=repuesto_id
        ).aggregate(total=Sum("cantidad"))["total"] or 0

    @classmethod
    def verificar_stock(cls, repuesto_id: int, cantidad: int) -> Dict[str, Any]:
        cantidad = cls._validate_cantidad(cantidad)
        repuesto = Repuesto.objects.filter(pk=to_int(repuesto_id, "repuesto_id")).first()
        if not repuesto:
            raise NotFoundError("Repuesto", repuesto_id)

        return success_response({
            "repuesto_id": repuesto.id,
            "codigo": repuesto.codigo,
            "stock_actual": repuesto.stock_actual,
            "solicitado": cantidad,
            "disponible": repuesto.activo and repuesto.stock_actual >= cantidad,
        })

    # ==================== MUTATIONS ====================

    @classmethod
    @transaction.atomic
    def create(cls,
               orden_id: int,
               repuesto_id: int,
               cantidad: int,
               precio_unitario=None,
               usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        cantidad = cls._validate_cantidad(cantidad)
        orden = cls._lock_orden(orden_id)

        uso = cls._consume(orden, repuesto_id, cantidad, precio_unitario, usuario)
        OrdenTrabajoService.refresh_totals(orden)

        logger.info(
            "Repuesto %s x%s usado en orden %s (stock restante %s)",
            uso.repuesto.codigo, cantidad, orden.numero_orden, uso.repuesto.stock_actual
        )
        return success_response({
            "uso": cls.serialize(uso),
            "stock_actual": uso.repuesto.stock_actual,
            "total_orden": str(orden.total_orden),
        }, "Repuesto agregado a la orden")

    @classmethod
    @transaction.atomic
    def update(cls, uso_id: int, usuario: Optional[Usuario] = None, **kwargs) -> Dict[str, Any]:
        orden, uso = cls._lock_uso(uso_id)

        if "cantidad" in kwargs:
            cantidad = cls._validate_cantidad(kwargs["cantidad"])
            delta = cantidad - uso.cantidad
            if delta > 0:
                repuesto = RepuestoMovimientoService.lock_repuesto(uso.repuesto_id)
                if not repuesto.activo:
                    raise BusinessRuleError(
                        f"El repuesto {repuesto.codigo} está inactivo", "repuesto_inactive"
                    )
                RepuestoMovimientoService.apply(
                    repuesto, Tipo.SALIDA, delta, f"Uso en orden: {orden.numero_orden}", usuario
                )
            elif delta < 0:
                cls._return_stock(uso, -delta, usuario)
            uso.cantidad = cantidad

        if "precio_unitario" in kwargs:
            uso.precio_unitario = cls._validate_precio(kwargs["precio_unitario"])

        uso.save()
        OrdenTrabajoService.refresh_totals(orden)
        uso.repuesto.refresh_from_db(fields=["stock_actual"])

        return success_response({
            "uso": cls.serialize(uso),
            "stock_actual": uso.repuesto.stock_actual,
            "total_orden": str(orden.total_orden),
        }, "Uso de repuesto actualizado")

    @classmethod
    @transaction.atomic
    def delete(cls, uso_id: int, usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        orden, uso = cls._lock_uso(uso_id)

        cls._return_stock(uso, uso.cantidad, usuario)
        uso.delete()
        OrdenTrabajoService.refresh_totals(orden)

        logger.info("Uso %s eliminado de la orden %s con devolución de stock", uso_id, orden.numero_orden)
        return success_response({
            "id": uso_id,
            "total_orden": str(orden.total_orden),
        }, "Repuesto removido de la orden")

    @classmethod
    @transaction.atomic
    def increment_en_orden(cls, orden_id: int, repuesto_id: int, cantidad: int,
                           usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        cantidad = cls._validate_cantidad(cantidad)
        orden = cls._lock_orden(orden_id)
        existente = cls.model.objects.filter(
            orden=orden, repuesto_id=to_int(repuesto_id, "repuesto_id")
        ).order_by("id").first()

        if existente:
            return cls.update(existente.id, usuario=usuario, cantidad=existente.cantidad + cantidad)
        return cls.create(orden_id, repuesto_id, cantidad, usuario=usuario)

    @classmethod
    @transaction.atomic
    def clone_to_orden(cls, orden_origen_id: int, orden_destino_id: int,
                       usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        if to_int(orden_origen_id, "orden_origen_id") == to_int(orden_destino_id, "orden_destino_id"):
            raise ValidationError("La orden de origen y destino deben ser distintas", "orden_destino_id")

        origen = OrdenTrabajoService.get_or_404(orden_origen_id)
        destino = cls._lock_orden(orden_destino_id)

        creados = [
            cls._consume(destino, uso.repuesto_id, uso.cantidad, uso.precio_unitario, usuario)
            for uso in origen.usos_repuesto.order_by("id")
        ]
        OrdenTrabajoService.refresh_totals(destino)

        logger.info(
            "Clonados %s uso(s) de %s a %s", len(creados), origen.numero_orden, destino.numero_orden
        )
        return success_response({
            "items": [cls.serialize(u) for u in creados],
            "cloned_count": len(creados),
            "total_orden": str(destino.total_orden),
        }, f"Clonados {len(creados)} repuesto(s)")

    @classmethod
    @transaction.atomic
    def clear_orden(cls, orden_id: int, usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        orden = cls._lock_orden(orden_id)

        usos = list(orden.usos_repuesto.select_related("orden").order_by("id"))
        for uso in usos:
            cls._return_stock(uso, uso.cantidad, usuario)
            uso.delete()

        OrdenTrabajoService.refresh_totals(orden)

        return success_response({
            "deleted_count": len(usos),
            "total_orden": str(orden.total_orden),
        }, "Repuestos de la orden devueltos al inventario")

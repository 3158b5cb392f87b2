import logging
from typing import Dict, Any, Optional

from django.db import transaction
from django.db.models import Sum, Count

from inventario.models import Repuesto, RepuestoMovimiento
from taller.models import Usuario
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError, InsufficientStockError,
    validate_choice, parse_date, to_int,
)

logger = logging.getLogger(__name__)

Tipo = RepuestoMovimiento.TipoMovimiento

INCOMING_TYPES = (Tipo.ENTRADA, Tipo.DEVOLUCION)
OUTGOING_TYPES = (Tipo.SALIDA, Tipo.MERMA, Tipo.TRANSFERENCIA)
ABSOLUTE_TYPES = (Tipo.AJUSTE, Tipo.INVENTARIO)


class RepuestoMovimientoService(BaseService):
    """
    Append-only stock ledger.

    Every change to Repuesto.stock_actual goes through apply(), which updates
    the stock and writes exactly one movement with the before/after values.
    Callers must hold a row lock on the repuesto (see lock_repuesto).
    """

    model = RepuestoMovimiento
    resource_name = "Movimiento"

    @classmethod
    def serialize(cls, mov: RepuestoMovimiento) -> Dict[str, Any]:
        return {
            "id": mov.id,
            "repuesto_id": mov.repuesto_id,
            "repuesto": {
                "id": mov.repuesto.id,
                "codigo": mov.repuesto.codigo,
                "nombre": mov.repuesto.nombre,
            },
            "tipo_movimiento": mov.tipo_movimiento,
            "tipo_display": mov.get_tipo_movimiento_display(),
            "cantidad": mov.cantidad,
            "stock_anterior": mov.stock_anterior,
            "stock_nuevo": mov.stock_nuevo,
            "referencia": mov.referencia,
            "usuario_movimiento_id": mov.usuario_movimiento_id,
            "usuario_movimiento": mov.usuario_movimiento.username if mov.usuario_movimiento else None,
            "fecha_movimiento": mov.fecha_movimiento.isoformat(),
        }

    @classmethod
    def lock_repuesto(cls, repuesto_id) -> Repuesto:
        repuesto = Repuesto.objects.select_for_update().filter(
            pk=to_int(repuesto_id, "repuesto_id")
        ).first()
        if not repuesto:
            raise NotFoundError("Repuesto", repuesto_id)
        return repuesto

    @classmethod
    def apply(cls,
              repuesto: Repuesto,
              tipo: str,
              cantidad: int,
              referencia: str = "",
              usuario: Optional[Usuario] = None) -> RepuestoMovimiento:
        """
        Apply a stock change to a locked repuesto and record it.

        Incoming types add cantidad, outgoing types subtract it and absolute
        types (AJUSTE, INVENTARIO) set the stock to cantidad.
        """
        validate_choice(tipo, Tipo.choices, "tipo_movimiento")
        cantidad = to_int(cantidad, "cantidad")
        if cantidad is None:
            raise ValidationError("La cantidad es obligatoria", "cantidad")

        stock_anterior = repuesto.stock_actual

        if tipo in ABSOLUTE_TYPES:
            if cantidad < 0:
                raise ValidationError("El stock no puede ser negativo", "cantidad")
            stock_nuevo = cantidad
            cantidad_movida = abs(stock_nuevo - stock_anterior)
        else:
            if cantidad <= 0:
                raise ValidationError("La cantidad debe ser mayor a cero", "cantidad")
            if tipo in INCOMING_TYPES:
                stock_nuevo = stock_anterior + cantidad
            else:
                stock_nuevo = stock_anterior - cantidad
            cantidad_movida = cantidad

        if stock_nuevo < 0:
            logger.warning(
                "Stock insuficiente para %s: disponible %s, solicitado %s",
                repuesto.codigo, stock_anterior, cantidad
            )
            raise InsufficientStockError(repuesto.nombre, cantidad, stock_anterior)

        repuesto.stock_actual = stock_nuevo
        repuesto.save(update_fields=["stock_actual", "updated_at"])

        movimiento = cls.model.objects.create(
            repuesto=repuesto,
            tipo_movimiento=tipo,
            cantidad=cantidad_movida,
            stock_anterior=stock_anterior,
            stock_nuevo=stock_nuevo,
            referencia=(referencia or "")[:100],
            usuario_movimiento=usuario,
        )

        logger.info(
            "Movimiento %s %s x%s: %s -> %s (%s)",
            tipo, repuesto.codigo, cantidad_movida, stock_anterior, stock_nuevo, referencia
        )
        return movimiento

    @classmethod
    @transaction.atomic
    def register(cls,
                 repuesto_id: int,
                 tipo_movimiento: str,
                 cantidad: int,
                 referencia: str = "",
                 usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        validate_choice(tipo_movimiento, Tipo.choices, "tipo_movimiento")
        repuesto = cls.lock_repuesto(repuesto_id)
        if not repuesto.activo:
            raise BusinessRuleError(f"El repuesto {repuesto.codigo} está inactivo", "repuesto_inactive")

        movimiento = cls.apply(repuesto, tipo_movimiento, cantidad, referencia, usuario)

        return success_response({
            "movimiento": cls.serialize(movimiento),
            "stock_actual": repuesto.stock_actual,
        }, "Movimiento registrado")

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             repuesto_id: int = None,
             tipo_movimiento: str = None,
             usuario_id: int = None,
             referencia: str = None,
             fecha_desde=None,
             fecha_hasta=None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("repuesto", "usuario_movimiento")

        if repuesto_id:
            queryset = queryset.filter(repuesto_id=repuesto_id)

        if tipo_movimiento:
            validate_choice(tipo_movimiento, Tipo.choices, "tipo_movimiento")
            queryset = queryset.filter(tipo_movimiento=tipo_movimiento)

        if usuario_id:
            queryset = queryset.filter(usuario_movimiento_id=usuario_id)

        if referencia:
            queryset = queryset.filter(referencia__icontains=referencia)

        desde = parse_date(fecha_desde, "fecha_desde")
        if desde:
            queryset = queryset.filter(fecha_movimiento__date__gte=desde)

        hasta = parse_date(fecha_hasta, "fecha_hasta")
        if hasta:
            queryset = queryset.filter(fecha_movimiento__date__lte=hasta)

        items, pagination = paginate_queryset(
            queryset.order_by("-fecha_movimiento", "-id"), page, per_page
        )

        return success_response({
            "items": [cls.serialize(m) for m in items],
            "pagination": pagination,
            "filters": {
                "tipos": [{"value": c[0], "label": c[1]} for c in Tipo.choices]
            }
        })

    @classmethod
    def get(cls, movimiento_id: int) -> Dict[str, Any]:
        return success_response({"movimiento": cls.serialize(cls.get_or_404(movimiento_id))})

    @classmethod
    def history(cls, repuesto_id: int, limit: int = 50) -> Dict[str, Any]:
        limit = min(max(1, to_int(limit, "limit", 50)), 100)
        repuesto = Repuesto.objects.filter(pk=repuesto_id).first()
        if not repuesto:
            raise NotFoundError("Repuesto", repuesto_id)

        movimientos = cls.model.objects.filter(
            repuesto=repuesto
        ).select_related("repuesto", "usuario_movimiento").order_by("-fecha_movimiento", "-id")[:limit]

        return success_response({
            "repuesto_id": repuesto.id,
            "stock_actual": repuesto.stock_actual,
            "items": [cls.serialize(m) for m in movimientos],
        })

    @classmethod
    def last(cls, repuesto_id: int) -> Optional[RepuestoMovimiento]:
        return cls.model.objects.filter(
            repuesto_id=repuesto_id
        ).order_by("-fecha_movimiento", "-id").first()

    @classmethod
    def resumen_por_tipo(cls, fecha_desde=None, fecha_hasta=None) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        desde = parse_date(fecha_desde, "fecha_desde")
        if desde:
            queryset = queryset.filter(fecha_movimiento__date__gte=desde)

        hasta = parse_date(fecha_hasta, "fecha_hasta")
        if hasta:
            queryset = queryset.filter(fecha_movimiento__date__lte=hasta)

        rows = queryset.values("tipo_movimiento").annotate(
            movimientos=Count("id"), cantidad_total=Sum("cantidad")
        ).order_by("tipo_movimiento")

        return success_response({
            "items": [
                {
                    "tipo_movimiento": r["tipo_movimiento"],
                    "movimientos": r["movimientos"],
                    "cantidad_total": r["cantidad_total"] or 0,
                }
                for r in rows
            ]
        })

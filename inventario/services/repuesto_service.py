import logging
from decimal import Decimal
from typing import Dict, Any, Optional

from django.db import transaction
from django.db.models import Q, F, Sum, ExpressionWrapper, DecimalField

from inventario.models import Repuesto, RepuestoMovimiento
from inventario.services.movimiento_service import RepuestoMovimientoService
from taller.models import Usuario
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError,
    require_decimal, require_text, to_int, to_bool,
)

logger = logging.getLogger(__name__)

Tipo = RepuestoMovimiento.TipoMovimiento


class RepuestoService(BaseService):
    model = Repuesto
    resource_name = "Repuesto"

    @classmethod
    def serialize(cls, repuesto: Repuesto) -> Dict[str, Any]:
        return {
            "id": repuesto.id,
            "codigo": repuesto.codigo,
            "nombre": repuesto.nombre,
            "descripcion": repuesto.descripcion,
            "categoria": repuesto.categoria,
            "stock_actual": repuesto.stock_actual,
            "stock_minimo": repuesto.stock_minimo,
            "stock_bajo": repuesto.stock_bajo,
            "precio_unitario": str(repuesto.precio_unitario),
            "activo": repuesto.activo,
            "created_at": repuesto.created_at.isoformat(),
            "updated_at": repuesto.updated_at.isoformat(),
        }

    @classmethod
    def serialize_brief(cls, repuesto: Repuesto) -> Dict[str, Any]:
        return {
            "id": repuesto.id,
            "codigo": repuesto.codigo,
            "nombre": repuesto.nombre,
            "stock_actual": repuesto.stock_actual,
            "precio_unitario": str(repuesto.precio_unitario),
        }

    @classmethod
    def _validate_precio(cls, precio) -> Decimal:
        precio = require_decimal(precio, "precio_unitario")
        if precio < 0:
            raise ValidationError("El precio unitario no puede ser negativo", "precio_unitario")
        return precio

    @classmethod
    def _validate_non_negative(cls, value, field: str) -> int:
        value = to_int(value, field)
        if value is None:
            raise ValidationError(f"El campo {field} es obligatorio", field)
        if value < 0:
            raise ValidationError(f"El campo {field} no puede ser negativo", field)
        return value

    # ==================== QUERIES ====================

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             search: str = None,
             categoria: str = None,
             activo: Optional[bool] = None,
             low_stock: bool = False,
             sin_stock: bool = False,
             precio_min=None,
             precio_max=None) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        if activo is not None:
            queryset = queryset.filter(activo=activo)

        if categoria:
            queryset = queryset.filter(categoria__iexact=categoria)

        if low_stock:
            queryset = queryset.filter(stock_actual__lte=F("stock_minimo"))

        if sin_stock:
            queryset = queryset.filter(stock_actual=0)

        if precio_min not in (None, ""):
            queryset = queryset.filter(precio_unitario__gte=require_decimal(precio_min, "precio_min"))

        if precio_max not in (None, ""):
            queryset = queryset.filter(precio_unitario__lte=require_decimal(precio_max, "precio_max"))

        if search:
            queryset = queryset.filter(
                Q(codigo__icontains=search) |
                Q(nombre__icontains=search) |
                Q(descripcion__icontains=search)
            )

        items, pagination = paginate_queryset(queryset.order_by("nombre", "id"), page, per_page)

        return success_response({
            "items": [cls.serialize(r) for r in items],
            "pagination": pagination,
        })

    @classmethod
    def get(cls, repuesto_id: int) -> Dict[str, Any]:
        return success_response({"repuesto": cls.serialize(cls.get_or_404(repuesto_id))})

    @classmethod
    def get_by_codigo(cls, codigo: str) -> Dict[str, Any]:
        repuesto = cls.model.objects.filter(codigo__iexact=(codigo or "").strip()).first()
        if not repuesto:
            raise NotFoundError(cls.resource_name, codigo)
        return success_response({"repuesto": cls.serialize(repuesto)})

    @classmethod
    def categorias(cls) -> Dict[str, Any]:
        categorias = cls.model.objects.filter(
            activo=True
        ).exclude(categoria="").values_list("categoria", flat=True).distinct().order_by("categoria")
        return success_response({"items": list(categorias)})

    @classmethod
    def low_stock(cls) -> Dict[str, Any]:
        repuestos = cls.model.objects.filter(
            activo=True, stock_actual__lte=F("stock_minimo")
        ).order_by("stock_actual", "nombre")
        return success_response({
            "items": [cls.serialize(r) for r in repuestos],
            "count": repuestos.count(),
        })

    # ==================== MUTATIONS ====================

    @classmethod
    @transaction.atomic
    def create(cls,
               codigo: str,
               nombre: str,
               precio_unitario,
               categoria: str = "",
               descripcion: str = "",
               stock_actual: int = 0,
               stock_minimo: int = 5,
               activo: bool = True,
               usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        codigo = require_text(codigo, "codigo", 30).upper()
        nombre = require_text(nombre, "nombre", 100)

        if cls.model.objects.filter(codigo__iexact=codigo).exists():
            raise ValidationError(f"El código '{codigo}' ya existe", "codigo")

        stock_inicial = cls._validate_non_negative(stock_actual, "stock_actual")

        repuesto = cls.model.objects.create(
            codigo=codigo,
            nombre=nombre,
            descripcion=descripcion or "",
            categoria=(categoria or "").strip(),
            stock_actual=0,
            stock_minimo=cls._validate_non_negative(stock_minimo, "stock_minimo"),
            precio_unitario=cls._validate_precio(precio_unitario),
            activo=to_bool(activo, "activo"),
        )

        if stock_inicial > 0:
            RepuestoMovimientoService.apply(
                repuesto, Tipo.INVENTARIO, stock_inicial, "Stock inicial", usuario
            )

        logger.info("Repuesto creado: %s (stock=%s)", repuesto.codigo, repuesto.stock_actual)
        return success_response({"repuesto": cls.serialize(repuesto)}, "Repuesto creado")

    @classmethod
    @transaction.atomic
    def update(cls, repuesto_id: int, **kwargs) -> Dict[str, Any]:
        repuesto = RepuestoMovimientoService.lock_repuesto(repuesto_id)
        valid_fields = {
            "codigo", "nombre", "descripcion", "categoria",
            "stock_minimo", "precio_unitario", "activo",
        }

        if "stock_actual" in kwargs:
            raise BusinessRuleError(
                "El stock solo se modifica mediante movimientos", "stock_via_movimientos"
            )

        if "codigo" in kwargs:
            codigo = require_text(kwargs["codigo"], "codigo", 30).upper()
            if cls.model.objects.filter(codigo__iexact=codigo).exclude(pk=repuesto.pk).exists():
                raise ValidationError(f"El código '{codigo}' ya existe", "codigo")
            kwargs["codigo"] = codigo

        if "nombre" in kwargs:
            kwargs["nombre"] = require_text(kwargs["nombre"], "nombre", 100)

        if "precio_unitario" in kwargs:
            kwargs["precio_unitario"] = cls._validate_precio(kwargs["precio_unitario"])

        if "stock_minimo" in kwargs:
            kwargs["stock_minimo"] = cls._validate_non_negative(kwargs["stock_minimo"], "stock_minimo")

        for field in ("descripcion", "categoria"):
            if field in kwargs:
                kwargs[field] = (kwargs[field] or "").strip()

        if "activo" in kwargs:
            kwargs["activo"] = to_bool(kwargs["activo"], "activo")

        updated = []
        for field, value in kwargs.items():
            if field in valid_fields:
                setattr(repuesto, field, value)
                updated.append(field)

        if updated:
            repuesto.save(update_fields=updated + ["updated_at"])

        return success_response(
            {"repuesto": cls.serialize(repuesto), "updated_fields": updated},
            "Repuesto actualizado"
        )

    # ==================== STOCK ====================

    @classmethod
    def increment_stock(cls, repuesto_id: int, cantidad: int, referencia: str = "",
                        usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        return RepuestoMovimientoService.register(
            repuesto_id, Tipo.ENTRADA, cantidad, referencia or "Ingreso de stock", usuario
        )

    @classmethod
    def decrement_stock(cls, repuesto_id: int, cantidad: int, referencia: str = "",
                        usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        return RepuestoMovimientoService.register(
            repuesto_id, Tipo.SALIDA, cantidad, referencia or "Salida de stock", usuario
        )

    @classmethod
    def set_stock(cls, repuesto_id: int, nuevo_stock: int, referencia: str = "",
                  usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        return RepuestoMovimientoService.register(
            repuesto_id, Tipo.AJUSTE, nuevo_stock, referencia or "Ajuste de stock", usuario
        )

    # ==================== DELETE / STATS ====================

    @classmethod
    def check_hard_delete(cls, repuesto: Repuesto) -> None:
        if repuesto.usos.exists():
            raise BusinessRuleError(
                "No se puede eliminar un repuesto usado en órdenes", "repuesto_has_usos"
            )
        if repuesto.movimientos.exists():
            raise BusinessRuleError(
                "No se puede eliminar un repuesto con movimientos registrados; desactívelo",
                "repuesto_has_movimientos"
            )

    @classmethod
    def stats(cls) -> Dict[str, Any]:
        activos = cls.model.objects.filter(activo=True)
        valor = activos.aggregate(
            total=Sum(ExpressionWrapper(
                F("stock_actual") * F("precio_unitario"),
                output_field=DecimalField(max_digits=14, decimal_places=2)
            ))
        )["total"] or Decimal("0")

        return success_response({
            "total": cls.model.objects.count(),
            "activos": activos.count(),
            "bajo_stock": activos.filter(stock_actual__lte=F("stock_minimo")).count(),
            "sin_stock": activos.filter(stock_actual=0).count(),
            "unidades_totales": activos.aggregate(total=Sum("stock_actual"))["total"] or 0,
            "valor_inventario": str(valor),
        })

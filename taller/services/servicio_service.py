import logging
from decimal import Decimal
from typing import Dict, Any

from django.db import transaction
from django.db.models import Q

from taller.models import Servicio
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError,
    require_text, require_decimal, to_int, to_bool, round_money,
)

logger = logging.getLogger(__name__)

CODIGOS_BASICOS = ["MAN001", "MAN002", "MAN003", "REP001", "ELE001"]


class ServicioService(BaseService):
    model = Servicio
    resource_name = "Servicio"

    @classmethod
    def serialize(cls, servicio: Servicio) -> Dict[str, Any]:
        return {
            "id": servicio.id,
            "codigo": servicio.codigo,
            "nombre": servicio.nombre,
            "descripcion": servicio.descripcion,
            "categoria": servicio.categoria,
            "precio_base": str(servicio.precio_base),
            "tiempo_estimado_minutos": servicio.tiempo_estimado_minutos,
            "activo": servicio.activo,
            "created_at": servicio.created_at.isoformat(),
            "updated_at": servicio.updated_at.isoformat(),
        }

    @classmethod
    def _validate_precio(cls, precio) -> Decimal:
        precio = require_decimal(precio, "precio_base")
        if precio < 0:
            raise ValidationError("El precio base no puede ser negativo", "precio_base")
        return precio

    @classmethod
    def _validate_tiempo(cls, minutos) -> int:
        minutos = to_int(minutos, "tiempo_estimado_minutos")
        if minutos is None or minutos <= 0:
            raise ValidationError(
                "El tiempo estimado debe ser mayor a cero", "tiempo_estimado_minutos"
            )
        return minutos

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             search: str = None,
             categoria: str = None,
             precio_min=None,
             precio_max=None,
             activo: bool = None) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        if activo is not None:
            queryset = queryset.filter(activo=activo)

        if categoria:
            queryset = queryset.filter(categoria__iexact=categoria)

        if precio_min not in (None, ""):
            queryset = queryset.filter(precio_base__gte=require_decimal(precio_min, "precio_min"))

        if precio_max not in (None, ""):
            queryset = queryset.filter(precio_base__lte=require_decimal(precio_max, "precio_max"))

        if search:
            queryset = queryset.filter(
                Q(codigo__icontains=search) |
                Q(nombre__icontains=search) |
                Q(descripcion__icontains=search)
            )

        items, pagination = paginate_queryset(
            queryset.order_by("categoria", "nombre"), page, per_page
        )

        return success_response({
            "items": [cls.serialize(s) for s in items],
            "pagination": pagination,
        })

    @classmethod
    def get(cls, servicio_id: int) -> Dict[str, Any]:
        return success_response({"servicio": cls.serialize(cls.get_or_404(servicio_id))})

    @classmethod
    def get_by_codigo(cls, codigo: str) -> Dict[str, Any]:
        servicio = cls.model.objects.filter(codigo__iexact=codigo).first()
        if not servicio:
            raise NotFoundError("Servicio con código", codigo)
        return success_response({"servicio": cls.serialize(servicio)})

    @classmethod
    @transaction.atomic
    def create(cls,
               codigo: str,
               nombre: str,
               categoria: str,
               precio_base=Decimal("0"),
               tiempo_estimado_minutos: int = 60,
               descripcion: str = "",
               activo: bool = True) -> Dict[str, Any]:
        codigo = require_text(codigo, "codigo", 20).upper()
        nombre = require_text(nombre, "nombre", 100)
        categoria = require_text(categoria, "categoria", 50)
        precio_base = cls._validate_precio(precio_base)
        tiempo_estimado_minutos = cls._validate_tiempo(tiempo_estimado_minutos)

        if cls.model.objects.filter(codigo__iexact=codigo).exists():
            raise ValidationError(f"El código '{codigo}' ya existe", "codigo")

        servicio = cls.model.objects.create(
            codigo=codigo,
            nombre=nombre,
            descripcion=descripcion or "",
            categoria=categoria,
            precio_base=precio_base,
            tiempo_estimado_minutos=tiempo_estimado_minutos,
            activo=to_bool(activo, "activo"),
        )

        logger.info("Servicio creado: %s", servicio.codigo)
        return success_response({"servicio": cls.serialize(servicio)}, "Servicio creado")

    @classmethod
    @transaction.atomic
    def update(cls, servicio_id: int, **kwargs) -> Dict[str, Any]:
        servicio = cls.get_for_update(servicio_id)
        valid_fields = {
            "codigo", "nombre", "descripcion", "categoria",
            "precio_base", "tiempo_estimado_minutos", "activo",
        }

        if "codigo" in kwargs:
            kwargs["codigo"] = require_text(kwargs["codigo"], "codigo", 20).upper()
            if cls.model.objects.filter(codigo__iexact=kwargs["codigo"]).exclude(pk=servicio.pk).exists():
                raise ValidationError(f"El código '{kwargs['codigo']}' ya existe", "codigo")

        if "nombre" in kwargs:
            kwargs["nombre"] = require_text(kwargs["nombre"], "nombre", 100)

        if "categoria" in kwargs:
            kwargs["categoria"] = require_text(kwargs["categoria"], "categoria", 50)

        if "precio_base" in kwargs:
            kwargs["precio_base"] = cls._validate_precio(kwargs["precio_base"])

        if "tiempo_estimado_minutos" in kwargs:
            kwargs["tiempo_estimado_minutos"] = cls._validate_tiempo(kwargs["tiempo_estimado_minutos"])

        if "descripcion" in kwargs:
            kwargs["descripcion"] = kwargs["descripcion"] or ""

        if "activo" in kwargs:
            kwargs["activo"] = to_bool(kwargs["activo"], "activo")

        updated = []
        for field, value in kwargs.items():
            if field in valid_fields:
                setattr(servicio, field, value)
                updated.append(field)

        if updated:
            servicio.save(update_fields=updated + ["updated_at"])

        return success_response(
            {"servicio": cls.serialize(servicio), "updated_fields": updated},
            "Servicio actualizado"
        )

    @classmethod
    def update_precio_base(cls, servicio_id: int, precio_base) -> Dict[str, Any]:
        return cls.update(servicio_id, precio_base=precio_base)

    @classmethod
    def update_tiempo_estimado(cls, servicio_id: int, minutos) -> Dict[str, Any]:
        return cls.update(servicio_id, tiempo_estimado_minutos=minutos)

    @classmethod
    @transaction.atomic
    def update_precios_por_categoria(cls, categoria: str, porcentaje) -> Dict[str, Any]:
        """
        Apply a percentage change to every active service of a category.
        A porcentaje of 10 raises prices by 10%, -5 lowers them by 5%.
        """
        categoria = require_text(categoria, "categoria", 50)
        porcentaje = require_decimal(porcentaje, "porcentaje")
        factor = Decimal("1") + porcentaje / Decimal("100")

        if factor < 0:
            raise ValidationError("El porcentaje produciría precios negativos", "porcentaje")

        servicios = list(
            cls.model.objects.select_for_update().filter(categoria__iexact=categoria, activo=True)
        )
        if not servicios:
            raise NotFoundError("Servicios de la categoría", categoria)

        for servicio in servicios:
            servicio.precio_base = round_money(servicio.precio_base * factor)
            servicio.save(update_fields=["precio_base", "updated_at"])

        logger.info(
            "Precios de categoría %s ajustados en %s%% (%d servicios)",
            categoria, porcentaje, len(servicios)
        )
        return success_response({
            "categoria": categoria,
            "porcentaje": str(porcentaje),
            "updated_count": len(servicios),
            "items": [cls.serialize(s) for s in servicios],
        }, f"Actualizados {len(servicios)} servicio(s)")

    @classmethod
    def categorias(cls) -> Dict[str, Any]:
        categorias = list(
            cls.get_active().order_by("categoria").values_list("categoria", flat=True).distinct()
        )
        return success_response({"categorias": categorias})

    @classmethod
    def servicios_basicos(cls) -> Dict[str, Any]:
        servicios = cls.get_active().filter(codigo__in=CODIGOS_BASICOS).order_by("codigo")
        return success_response({"items": [cls.serialize(s) for s in servicios]})

    @classmethod
    def check_hard_delete(cls, servicio: Servicio) -> None:
        if servicio.detalles.exists():
            raise BusinessRuleError(
                "No se puede eliminar un servicio usado en órdenes de trabajo",
                "servicio_in_use"
            )

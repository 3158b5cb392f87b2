import logging
from decimal import Decimal
from typing import Dict, Any, Optional

from django.db import transaction
from django.db.models import Q, Sum, Count

from taller.models import OrdenTrabajo, OrdenHistorial, Moto, Usuario, Pago
from taller.services.base_service import (
    BaseService, success_response, paginate_queryset,
    ValidationError, NotFoundError, BusinessRuleError,
    require_text, validate_choice, parse_date, parse_datetime,
    generate_number, to_int,
)

logger = logging.getLogger(__name__)

ORDER_PREFIX = "OT"


class OrdenTrabajoService(BaseService):
    model = OrdenTrabajo
    resource_name = "Orden de trabajo"

    # ==================== SERIALIZATION ====================

    @classmethod
    def serialize(cls, orden: OrdenTrabajo, include_detail: bool = False) -> Dict[str, Any]:
        data = {
            "id": orden.id,
            "numero_orden": orden.numero_orden,
            "moto_id": orden.moto_id,
            "moto": {
                "id": orden.moto.id,
                "placa": orden.moto.placa,
                "marca": orden.moto.marca,
                "modelo": orden.moto.modelo,
            },
            "cliente": {
                "id": orden.moto.cliente.id,
                "nombre": orden.moto.cliente.nombre,
                "telefono": orden.moto.cliente.telefono,
            },
            "usuario_creador_id": orden.usuario_creador_id,
            "usuario_creador": orden.usuario_creador.username,
            "mecanico_asignado_id": orden.mecanico_asignado_id,
            "mecanico_asignado": {
                "id": orden.mecanico_asignado.id,
                "nombre_completo": orden.mecanico_asignado.nombre_completo,
            } if orden.mecanico_asignado else None,
            "fecha_ingreso": orden.fecha_ingreso.isoformat(),
            "fecha_estimada_entrega": (
                orden.fecha_estimada_entrega.isoformat() if orden.fecha_estimada_entrega else None
            ),
            "estado": orden.estado,
            "estado_display": orden.get_estado_display(),
            "prioridad": orden.prioridad,
            "descripcion_problema": orden.descripcion_problema,
            "diagnostico": orden.diagnostico,
            "observaciones": orden.observaciones,
            "total_servicios": str(orden.total_servicios),
            "total_repuestos": str(orden.total_repuestos),
            "total_orden": str(orden.total_orden),
            "estado_pago": orden.estado_pago,
            "created_at": orden.created_at.isoformat(),
            "updated_at": orden.updated_at.isoformat(),
        }

        if include_detail:
            total_pagado = cls.total_pagado(orden)
            data["total_pagado"] = str(total_pagado)
            data["saldo"] = str(max(orden.total_orden - total_pagado, Decimal("0")))
            data["detalles"] = [
                {
                    "id": d.id,
                    "servicio_id": d.servicio_id,
                    "servicio_codigo": d.servicio.codigo,
                    "servicio_nombre": d.servicio.nombre,
                    "precio_aplicado": str(d.precio_aplicado),
                    "observaciones": d.observaciones,
                }
                for d in orden.detalles.select_related("servicio")
            ]
            data["usos_repuesto"] = [
                {
                    "id": u.id,
                    "repuesto_id": u.repuesto_id,
                    "repuesto_codigo": u.repuesto.codigo,
                    "repuesto_nombre": u.repuesto.nombre,
                    "cantidad": u.cantidad,
                    "precio_unitario": str(u.precio_unitario),
                    "subtotal": str(u.subtotal),
                }
                for u in orden.usos_repuesto.select_related("repuesto")
            ]
            data["pagos"] = [
                {
                    "id": p.id,
                    "monto": str(p.monto),
                    "metodo": p.metodo,
                    "fecha_pago": p.fecha_pago.isoformat(),
                    "referencia": p.referencia,
                }
                for p in orden.pagos.all()
            ]
            data["historial"] = [
                OrdenHistorialService.serialize(h)
                for h in orden.historial.select_related("usuario_cambio")
            ]

        return data

    @classmethod
    def _base_queryset(cls):
        return cls.model.objects.select_related(
            "moto", "moto__cliente", "usuario_creador", "mecanico_asignado"
        )

    @classmethod
    def get_or_404(cls, id: int) -> OrdenTrabajo:
        orden = cls._base_queryset().filter(pk=id).first()
        if not orden:
            raise NotFoundError(cls.resource_name, id)
        return orden

    @classmethod
    def lock(cls, orden_id: int) -> OrdenTrabajo:
        orden = cls.model.objects.select_for_update().filter(pk=orden_id).first()
        if not orden:
            raise NotFoundError(cls.resource_name, orden_id)
        return orden

    @classmethod
    def ensure_editable(cls, orden: OrdenTrabajo) -> None:
        if orden.es_final:
            raise BusinessRuleError(
                f"La orden {orden.numero_orden} está {orden.get_estado_display().lower()} y no admite cambios",
                "orden_final"
            )

    @classmethod
    def _get_mecanico(cls, mecanico_id) -> Usuario:
        mecanico = Usuario.objects.filter(pk=to_int(mecanico_id, "mecanico_asignado_id")).first()
        if not mecanico:
            raise NotFoundError("Mecánico", mecanico_id)
        if mecanico.rol != Usuario.Rol.MECANICO or not mecanico.activo:
            raise BusinessRuleError(
                f"El usuario {mecanico.username} no es un mecánico activo", "mecanico_invalid"
            )
        return mecanico

    # ==================== TOTALS ====================

    @classmethod
    def total_pagado(cls, orden: OrdenTrabajo) -> Decimal:
        return orden.pagos.aggregate(total=Sum("monto"))["total"] or Decimal("0")

    @classmethod
    def derive_estado_pago(cls, total_orden: Decimal, total_pagado: Decimal) -> str:
        if total_orden > 0 and total_pagado >= total_orden:
            return OrdenTrabajo.EstadoPago.PAGADO
        if total_pagado > 0:
            return OrdenTrabajo.EstadoPago.PARCIAL
        return OrdenTrabajo.EstadoPago.PENDIENTE

    @classmethod
    def refresh_totals(cls, orden: OrdenTrabajo) -> OrdenTrabajo:
        """Recompute totals and estado_pago from detalles, usos and pagos and persist them."""
        total_servicios = orden.detalles.aggregate(total=Sum("precio_aplicado"))["total"] or Decimal("0")
        total_repuestos = orden.usos_repuesto.aggregate(total=Sum("subtotal"))["total"] or Decimal("0")

        orden.total_servicios = total_servicios
        orden.total_repuestos = total_repuestos
        orden.total_orden = total_servicios + total_repuestos
        orden.estado_pago = cls.derive_estado_pago(orden.total_orden, cls.total_pagado(orden))
        orden.save(update_fields=[
            "total_servicios", "total_repuestos", "total_orden", "estado_pago", "updated_at"
        ])
        return orden

    @classmethod
    @transaction.atomic
    def recalcular_totales(cls, orden_id: int) -> Dict[str, Any]:
        orden = cls.refresh_totals(cls.lock(orden_id))
        return success_response({
            "id": orden.id,
            "total_servicios": str(orden.total_servicios),
            "total_repuestos": str(orden.total_repuestos),
            "total_orden": str(orden.total_orden),
            "estado_pago": orden.estado_pago,
        }, "Totales recalculados")

    # ==================== QUERIES ====================

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             search: str = None,
             estado: str = None,
             prioridad: str = None,
             estado_pago: str = None,
             moto_id: int = None,
             cliente_id: int = None,
             mecanico_id: int = None,
             sin_mecanico: bool = False,
             fecha_desde=None,
             fecha_hasta=None) -> Dict[str, Any]:
        queryset = cls._base_queryset()

        if estado:
            estados = [e.strip() for e in estado.split(",") if e.strip()]
            for e in estados:
                validate_choice(e, OrdenTrabajo.Estado.choices, "estado")
            queryset = queryset.filter(estado__in=estados)

        if prioridad:
            validate_choice(prioridad, OrdenTrabajo.Prioridad.choices, "prioridad")
            queryset = queryset.filter(prioridad=prioridad)

        if estado_pago:
            validate_choice(estado_pago, OrdenTrabajo.EstadoPago.choices, "estado_pago")
            queryset = queryset.filter(estado_pago=estado_pago)

        if moto_id:
            queryset = queryset.filter(moto_id=moto_id)

        if cliente_id:
            queryset = queryset.filter(moto__cliente_id=cliente_id)

        if mecanico_id:
            queryset = queryset.filter(mecanico_asignado_id=mecanico_id)

        if sin_mecanico:
            queryset = queryset.filter(mecanico_asignado__isnull=True)

        desde = parse_date(fecha_desde, "fecha_desde")
        if desde:
            queryset = queryset.filter(fecha_ingreso__date__gte=desde)

        hasta = parse_date(fecha_hasta, "fecha_hasta")
        if hasta:
            queryset = queryset.filter(fecha_ingreso__date__lte=hasta)

        if search:
            queryset = queryset.filter(
                Q(numero_orden__icontains=search) |
                Q(moto__placa__icontains=search) |
                Q(moto__cliente__nombre__icontains=search) |
                Q(descripcion_problema__icontains=search)
            )

        items, pagination = paginate_queryset(
            queryset.order_by("-fecha_ingreso", "-id"), page, per_page
        )

        return success_response({
            "items": [cls.serialize(o) for o in items],
            "pagination": pagination,
            "filters": {
                "estados": [{"value": c[0], "label": c[1]} for c in OrdenTrabajo.Estado.choices],
                "prioridades": [{"value": c[0], "label": c[1]} for c in OrdenTrabajo.Prioridad.choices],
            }
        })

    @classmethod
    def get(cls, orden_id: int) -> Dict[str, Any]:
        orden = cls.get_or_404(orden_id)
        return success_response({"orden": cls.serialize(orden, include_detail=True)})

    @classmethod
    def get_by_numero(cls, numero_orden: str) -> Dict[str, Any]:
        orden = cls._base_queryset().filter(numero_orden=numero_orden).first()
        if not orden:
            raise NotFoundError(cls.resource_name, numero_orden)
        return success_response({"orden": cls.serialize(orden, include_detail=True)})

    # ==================== MUTATIONS ====================

    @classmethod
    @transaction.atomic
    def create(cls,
               moto_id: int,
               descripcion_problema: str,
               usuario_creador: Usuario,
               mecanico_asignado_id: int = None,
               numero_orden: str = None,
               prioridad: str = OrdenTrabajo.Prioridad.NORMAL,
               fecha_estimada_entrega=None,
               fecha_ingreso=None,
               diagnostico: str = "",
               observaciones: str = "") -> Dict[str, Any]:
        moto = Moto.objects.select_related("cliente").filter(pk=to_int(moto_id, "moto_id")).first()
        if not moto:
            raise NotFoundError("Moto", moto_id)
        if not moto.activo:
            raise BusinessRuleError("La moto está inactiva", "moto_inactive")

        descripcion_problema = require_text(descripcion_problema, "descripcion_problema")
        validate_choice(prioridad, OrdenTrabajo.Prioridad.choices, "prioridad")

        mecanico = cls._get_mecanico(mecanico_asignado_id) if mecanico_asignado_id else None

        if numero_orden:
            numero_orden = require_text(numero_orden, "numero_orden", 20)
            if cls.model.objects.filter(numero_orden=numero_orden).exists():
                raise ValidationError(f"El número de orden '{numero_orden}' ya existe", "numero_orden")
        else:
            numero_orden = generate_number(ORDER_PREFIX, cls.model, "numero_orden")

        kwargs = {}
        ingreso = parse_datetime(fecha_ingreso, "fecha_ingreso")
        if ingreso:
            kwargs["fecha_ingreso"] = ingreso

        orden = cls.model.objects.create(
            numero_orden=numero_orden,
            moto=moto,
            usuario_creador=usuario_creador,
            mecanico_asignado=mecanico,
            fecha_estimada_entrega=parse_date(fecha_estimada_entrega, "fecha_estimada_entrega"),
            prioridad=prioridad,
            descripcion_problema=descripcion_problema,
            diagnostico=diagnostico or "",
            observaciones=observaciones or "",
            **kwargs
        )

        OrdenHistorialService.record(
            orden, None, orden.estado, "Orden creada", usuario_creador
        )

        logger.info("Orden creada: %s (moto=%s)", orden.numero_orden, moto.placa)
        return success_response(
            {"orden": cls.serialize(cls.get_or_404(orden.id))}, "Orden de trabajo creada"
        )

    @classmethod
    @transaction.atomic
    def update(cls, orden_id: int, **kwargs) -> Dict[str, Any]:
        orden = cls.lock(to_int(orden_id, "orden_id"))
        cls.ensure_editable(orden)
        valid_fields = {
            "descripcion_problema", "diagnostico", "observaciones",
            "fecha_estimada_entrega", "prioridad",
        }

        if "descripcion_problema" in kwargs:
            kwargs["descripcion_problema"] = require_text(
                kwargs["descripcion_problema"], "descripcion_problema"
            )

        if "prioridad" in kwargs:
            validate_choice(kwargs["prioridad"], OrdenTrabajo.Prioridad.choices, "prioridad")

        if "fecha_estimada_entrega" in kwargs:
            kwargs["fecha_estimada_entrega"] = parse_date(
                kwargs["fecha_estimada_entrega"], "fecha_estimada_entrega"
            )

        for field in ("diagnostico", "observaciones"):
            if field in kwargs:
                kwargs[field] = kwargs[field] or ""

        updated = []
        for field, value in kwargs.items():
            if field in valid_fields:
                setattr(orden, field, value)
                updated.append(field)

        if updated:
            orden.save(update_fields=updated + ["updated_at"])

        return success_response(
            {"orden": cls.serialize(cls.get_or_404(orden.id)), "updated_fields": updated},
            "Orden actualizada"
        )

    @classmethod
    @transaction.atomic
    def change_estado(cls, orden_id: int, estado: str,
                      comentario: str = "", usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        validate_choice(estado, OrdenTrabajo.Estado.choices, "estado")
        orden = cls.lock(orden_id)
        cls.ensure_editable(orden)

        if orden.estado == estado:
            raise BusinessRuleError(f"La orden ya está en estado {estado}", "same_estado")

        anterior = orden.estado
        orden.estado = estado
        orden.save(update_fields=["estado", "updated_at"])

        OrdenHistorialService.record(orden, anterior, estado, comentario or "", usuario)

        logger.info("Orden %s: %s -> %s", orden.numero_orden, anterior, estado)
        return success_response(
            {"orden": cls.serialize(cls.get_or_404(orden.id))},
            f"Estado cambiado a {estado}"
        )

    @classmethod
    @transaction.atomic
    def assign_mecanico(cls, orden_id: int, mecanico_id: Optional[int],
                        usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        orden = cls.get_or_404(orden_id)
        cls.ensure_editable(orden)

        mecanico = cls._get_mecanico(mecanico_id) if mecanico_id else None
        orden.mecanico_asignado = mecanico
        orden.save(update_fields=["mecanico_asignado", "updated_at"])

        comentario = (
            f"Mecánico asignado: {mecanico.nombre_completo}" if mecanico else "Mecánico desasignado"
        )
        OrdenHistorialService.record(orden, orden.estado, orden.estado, comentario, usuario)

        return success_response({"orden": cls.serialize(orden)}, comentario)

    @classmethod
    def change_prioridad(cls, orden_id: int, prioridad: str) -> Dict[str, Any]:
        return cls.update(orden_id, prioridad=prioridad)

    @classmethod
    def update_diagnostico(cls, orden_id: int, diagnostico: str) -> Dict[str, Any]:
        return cls.update(orden_id, diagnostico=diagnostico)

    @classmethod
    def update_fecha_estimada(cls, orden_id: int, fecha_estimada_entrega) -> Dict[str, Any]:
        return cls.update(orden_id, fecha_estimada_entrega=fecha_estimada_entrega)

    @classmethod
    @transaction.atomic
    def change_estado_pago(cls, orden_id: int, estado_pago: str) -> Dict[str, Any]:
        validate_choice(estado_pago, OrdenTrabajo.EstadoPago.choices, "estado_pago")
        orden = cls.lock(orden_id)
        orden.estado_pago = estado_pago
        orden.save(update_fields=["estado_pago", "updated_at"])

        logger.info("Orden %s: estado de pago fijado manualmente a %s", orden.numero_orden, estado_pago)
        return success_response(
            {"id": orden.id, "estado_pago": orden.estado_pago}, "Estado de pago actualizado"
        )

    @classmethod
    def soft_delete(cls, orden_id: int, usuario: Optional[Usuario] = None) -> Dict[str, Any]:
        return cls.change_estado(
            orden_id, OrdenTrabajo.Estado.CANCELADA, "Orden cancelada", usuario
        )

    @classmethod
    def check_hard_delete(cls, orden: OrdenTrabajo) -> None:
        if orden.pagos.exists():
            raise BusinessRuleError(
                "No se puede eliminar una orden con pagos registrados", "orden_has_pagos"
            )
        if orden.usos_repuesto.exists():
            raise BusinessRuleError(
                "Devuelva los repuestos usados antes de eliminar la orden", "orden_has_usos"
            )

    @classmethod
    def stats(cls) -> Dict[str, Any]:
        queryset = cls.model.objects.all()
        by_estado = {
            row["estado"]: row["total"]
            for row in queryset.values("estado").annotate(total=Count("id"))
        }
        by_prioridad = {
            row["prioridad"]: row["total"]
            for row in queryset.values("prioridad").annotate(total=Count("id"))
        }

        pendientes = queryset.exclude(
            estado_pago=OrdenTrabajo.EstadoPago.PAGADO
        ).exclude(estado=OrdenTrabajo.Estado.CANCELADA)
        total_pendiente = pendientes.aggregate(total=Sum("total_orden"))["total"] or Decimal("0")
        pagado_pendiente = Pago.objects.filter(
            orden__in=pendientes
        ).aggregate(total=Sum("monto"))["total"] or Decimal("0")

        return success_response({
            "total": queryset.count(),
            "por_estado": {e: by_estado.get(e, 0) for e, _ in OrdenTrabajo.Estado.choices},
            "por_prioridad": {p: by_prioridad.get(p, 0) for p, _ in OrdenTrabajo.Prioridad.choices},
            "sin_mecanico": queryset.filter(
                mecanico_asignado__isnull=True
            ).exclude(estado__in=OrdenTrabajo.ESTADOS_FINALES).count(),
            "monto_pendiente_cobro": str(max(total_pendiente - pagado_pendiente, Decimal("0"))),
        })


class OrdenHistorialService(BaseService):
    model = OrdenHistorial
    resource_name = "Historial"

    @classmethod
    def serialize(cls, historial: OrdenHistorial) -> Dict[str, Any]:
        return {
            "id": historial.id,
            "orden_id": historial.orden_id,
            "estado_anterior": historial.estado_anterior,
            "estado_nuevo": historial.estado_nuevo,
            "comentario": historial.comentario,
            "usuario_cambio_id": historial.usuario_cambio_id,
            "usuario_cambio": historial.usuario_cambio.username if historial.usuario_cambio else None,
            "fecha_cambio": historial.fecha_cambio.isoformat(),
        }

    @classmethod
    def record(cls, orden: OrdenTrabajo, estado_anterior: Optional[str], estado_nuevo: str,
               comentario: str = "", usuario: Optional[Usuario] = None) -> OrdenHistorial:
        return cls.model.objects.create(
            orden=orden,
            estado_anterior=estado_anterior,
            estado_nuevo=estado_nuevo,
            comentario=comentario,
            usuario_cambio=usuario,
        )

    @classmethod
    def for_orden(cls, orden_id: int) -> Dict[str, Any]:
        if not OrdenTrabajo.objects.filter(pk=orden_id).exists():
            raise NotFoundError(OrdenTrabajoService.resource_name, orden_id)
        historial = cls.model.objects.filter(orden_id=orden_id).select_related("usuario_cambio")
        return success_response({
            "orden_id": orden_id,
            "items": [cls.serialize(h) for h in historial],
        })

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 20,
             orden_id: int = None,
             usuario_id: int = None,
             estado_nuevo: str = None,
             fecha_desde=None,
             fecha_hasta=None) -> Dict[str, Any]:
        queryset = cls.model.objects.select_related("usuario_cambio")

        if orden_id:
            queryset = queryset.filter(orden_id=orden_id)

        if usuario_id:
            queryset = queryset.filter(usuario_cambio_id=usuario_id)

        if estado_nuevo:
            validate_choice(estado_nuevo, OrdenTrabajo.Estado.choices, "estado_nuevo")
            queryset = queryset.filter(estado_nuevo=estado_nuevo)

        desde = parse_date(fecha_desde, "fecha_desde")
        if desde:
            queryset = queryset.filter(fecha_cambio__date__gte=desde)

        hasta = parse_date(fecha_hasta, "fecha_hasta")
        if hasta:
            queryset = queryset.filter(fecha_cambio__date__lte=hasta)

        items, pagination = paginate_queryset(
            queryset.order_by("-fecha_cambio", "-id"), page, per_page
        )
        return success_response({
            "items": [cls.serialize(h) for h in items],
            "pagination": pagination,
        })

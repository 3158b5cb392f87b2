from taller.services import OrdenTrabajoService, OrdenHistorialService
from taller.views.base import BaseApiView, handle_service_error


class OrdenListView(BaseApiView):
    """GET/POST /api/ordenes/"""

    def get(self, request):
        try:
            page, per_page = self.get_page(request)
            result = OrdenTrabajoService.list(
                page=page,
                per_page=per_page,
                search=request.GET.get("search"),
                estado=request.GET.get("estado"),
                prioridad=request.GET.get("prioridad"),
                estado_pago=request.GET.get("estado_pago"),
                moto_id=self.get_int_param(request, "moto_id"),
                cliente_id=self.get_int_param(request, "cliente_id"),
                mecanico_id=self.get_int_param(request, "mecanico_id"),
                sin_mecanico=self.get_bool_param(request, "sin_mecanico", False),
                fecha_desde=request.GET.get("fecha_desde"),
                fecha_hasta=request.GET.get("fecha_hasta"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "moto_id", "descripcion_problema")
            result = OrdenTrabajoService.create(
                moto_id=data["moto_id"],
                descripcion_problema=data["descripcion_problema"],
                usuario_creador=request.usuario,
                mecanico_asignado_id=data.get("mecanico_asignado_id"),
                numero_orden=data.get("numero_orden"),
                prioridad=data.get("prioridad", "NORMAL"),
                fecha_estimada_entrega=data.get("fecha_estimada_entrega"),
                fecha_ingreso=data.get("fecha_ingreso"),
                diagnostico=data.get("diagnostico", ""),
                observaciones=data.get("observaciones", ""),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class OrdenDetailView(BaseApiView):
    """GET/PUT/DELETE /api/ordenes/<id>/ - DELETE cancels, ?hard=true removes"""

    def get(self, request, orden_id):
        try:
            return self.success(OrdenTrabajoService.get(orden_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, orden_id):
        try:
            data = self.get_update_body(request, "orden_id")
            return self.success(OrdenTrabajoService.update(orden_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, orden_id):
        try:
            if self.get_bool_param(request, "hard", False):
                result = OrdenTrabajoService.hard_delete(orden_id)
            else:
                result = OrdenTrabajoService.soft_delete(orden_id, request.usuario)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class OrdenNumeroView(BaseApiView):
    """GET /api/ordenes/numero/<numero>/"""

    def get(self, request, numero_orden):
        try:
            return self.success(OrdenTrabajoService.get_by_numero(numero_orden))
        except Exception as e:
            return handle_service_error(e)


class OrdenEstadoView(BaseApiView):
    """PATCH /api/ordenes/<id>/estado/ {"estado", "comentario"}"""

    def patch(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "estado")
            result = OrdenTrabajoService.change_estado(
                orden_id, data["estado"], data.get("comentario", ""), request.usuario
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class OrdenMecanicoView(BaseApiView):
    """PATCH /api/ordenes/<id>/mecanico/ {"mecanico_id": null} unassigns"""

    def patch(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            result = OrdenTrabajoService.assign_mecanico(
                orden_id, data.get("mecanico_id"), request.usuario
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class OrdenPrioridadView(BaseApiView):

    def patch(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "prioridad")
            return self.success(OrdenTrabajoService.change_prioridad(orden_id, data["prioridad"]))
        except Exception as e:
            return handle_service_error(e)


class OrdenDiagnosticoView(BaseApiView):

    def patch(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "diagnostico")
            return self.success(OrdenTrabajoService.update_diagnostico(orden_id, data["diagnostico"]))
        except Exception as e:
            return handle_service_error(e)


class OrdenFechaEstimadaView(BaseApiView):

    def patch(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            result = OrdenTrabajoService.update_fecha_estimada(
                orden_id, data.get("fecha_estimada_entrega")
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class OrdenEstadoPagoView(BaseApiView):
    """PATCH /api/ordenes/<id>/estado-pago/ - manual override"""

    def patch(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "estado_pago")
            return self.success(OrdenTrabajoService.change_estado_pago(orden_id, data["estado_pago"]))
        except Exception as e:
            return handle_service_error(e)


class OrdenRecalcularView(BaseApiView):

    def post(self, request, orden_id):
        try:
            return self.success(OrdenTrabajoService.recalcular_totales(orden_id))
        except Exception as e:
            return handle_service_error(e)


class OrdenHistorialView(BaseApiView):
    """GET /api/ordenes/<id>/historial/"""

    def get(self, request, orden_id):
        try:
            return self.success(OrdenHistorialService.for_orden(orden_id))
        except Exception as e:
            return handle_service_error(e)


class OrdenStatsView(BaseApiView):

    def get(self, request):
        try:
            return self.success(OrdenTrabajoService.stats())
        except Exception as e:
            return handle_service_error(e)


class HistorialListView(BaseApiView):
    """GET /api/historial/"""

    def get(self, request):
        try:
            page, per_page = self.get_page(request)
            result = OrdenHistorialService.list(
                page=page,
                per_page=per_page,
                orden_id=self.get_int_param(request, "orden_id"),
                usuario_id=self.get_int_param(request, "usuario_id"),
                estado_nuevo=request.GET.get("estado_nuevo"),
                fecha_desde=request.GET.get("fecha_desde"),
                fecha_hasta=request.GET.get("fecha_hasta"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

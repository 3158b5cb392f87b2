from taller.services import PagoService
from taller.views.base import BaseApiView, handle_service_error, ADMIN_ROLES


class PagoListView(BaseApiView):
    """GET/POST /api/pagos/"""

    allowed_roles = ADMIN_ROLES

    def get(self, request):
        try:
            page, per_page = self.get_page(request)
            result = PagoService.list(
                page=page,
                per_page=per_page,
                orden_id=self.get_int_param(request, "orden_id"),
                metodo=request.GET.get("metodo"),
                referencia=request.GET.get("referencia"),
                monto_min=request.GET.get("monto_min"),
                monto_max=request.GET.get("monto_max"),
                fecha_desde=request.GET.get("fecha_desde"),
                fecha_hasta=request.GET.get("fecha_hasta"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "orden_id", "monto", "metodo")
            result = PagoService.create(
                orden_id=data["orden_id"],
                monto=data["monto"],
                metodo=data["metodo"],
                referencia=data.get("referencia", ""),
                observaciones=data.get("observaciones", ""),
                fecha_pago=data.get("fecha_pago"),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class PagoDetailView(BaseApiView):
    """GET/PUT/DELETE /api/pagos/<id>/"""

    allowed_roles = ADMIN_ROLES

    def get(self, request, pago_id):
        try:
            return self.success(PagoService.get(pago_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, pago_id):
        try:
            data = self.get_update_body(request, "pago_id")
            return self.success(PagoService.update(pago_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, pago_id):
        try:
            return self.success(PagoService.delete(pago_id))
        except Exception as e:
            return handle_service_error(e)


class PagoResumenOrdenView(BaseApiView):
    """GET /api/pagos/orden/<id>/resumen/"""

    allowed_roles = ADMIN_ROLES

    def get(self, request, orden_id):
        try:
            return self.success(PagoService.resumen_orden(orden_id))
        except Exception as e:
            return handle_service_error(e)


class PagoResumenMetodosView(BaseApiView):
    allowed_roles = ADMIN_ROLES

    def get(self, request):
        try:
            result = PagoService.resumen_por_metodo(
                request.GET.get("fecha_desde"), request.GET.get("fecha_hasta")
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class PagoResumenDiarioView(BaseApiView):
    allowed_roles = ADMIN_ROLES

    def get(self, request):
        try:
            result = PagoService.resumen_diario(
                request.GET.get("fecha_desde"), request.GET.get("fecha_hasta")
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

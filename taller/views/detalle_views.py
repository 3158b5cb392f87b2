from taller.services import DetalleOrdenService
from taller.views.base import BaseApiView, handle_service_error


class OrdenServiciosView(BaseApiView):
    """GET/POST/DELETE /api/ordenes/<id>/servicios/"""

    def get(self, request, orden_id):
        try:
            return self.success(DetalleOrdenService.list(orden_id=orden_id))
        except Exception as e:
            return handle_service_error(e)

    def post(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "servicio_id")
            result = DetalleOrdenService.add_servicio(
                orden_id,
                data["servicio_id"],
                precio_aplicado=data.get("precio_aplicado"),
                observaciones=data.get("observaciones", ""),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, orden_id):
        try:
            return self.success(DetalleOrdenService.clear_orden(orden_id))
        except Exception as e:
            return handle_service_error(e)


class DetalleView(BaseApiView):
    """GET/PUT/DELETE /api/detalles/<id>/"""

    def get(self, request, detalle_id):
        try:
            return self.success(DetalleOrdenService.get(detalle_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, detalle_id):
        try:
            data = self.get_update_body(request, "detalle_id")
            return self.success(DetalleOrdenService.update(detalle_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, detalle_id):
        try:
            return self.success(DetalleOrdenService.remove(detalle_id))
        except Exception as e:
            return handle_service_error(e)


class OrdenServiciosClonarView(BaseApiView):
    """POST /api/ordenes/<id>/servicios/clonar/ {"orden_origen_id"}"""

    def post(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "orden_origen_id")
            result = DetalleOrdenService.clone_to_orden(data["orden_origen_id"], orden_id)
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)

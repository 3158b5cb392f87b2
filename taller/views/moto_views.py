from taller.services import MotoService
from taller.views.base import BaseApiView, handle_service_error


class MotoListView(BaseApiView):
    """GET/POST /api/motos/"""

    def get(self, request):
        try:
            placa = request.GET.get("placa")
            if placa:
                return self.success(MotoService.get_by_placa(placa))

            page, per_page = self.get_page(request)
            result = MotoService.list(
                page=page,
                per_page=per_page,
                search=request.GET.get("search"),
                cliente_id=self.get_int_param(request, "cliente_id"),
                marca=request.GET.get("marca"),
                anio_desde=self.get_int_param(request, "anio_desde"),
                anio_hasta=self.get_int_param(request, "anio_hasta"),
                activo=self.get_bool_param(request, "activo"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "cliente_id", "marca", "modelo", "placa")
            result = MotoService.create(
                cliente_id=data["cliente_id"],
                marca=data["marca"],
                modelo=data["modelo"],
                placa=data["placa"],
                anio=data.get("anio"),
                vin=data.get("vin"),
                color=data.get("color", ""),
                kilometraje=data.get("kilometraje", 0),
                activo=data.get("activo", True),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class MotoDetailView(BaseApiView):
    """GET/PUT/DELETE /api/motos/<id>/"""

    def get(self, request, moto_id):
        try:
            return self.success(MotoService.get(moto_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, moto_id):
        try:
            data = self.get_update_body(request, "moto_id")
            return self.success(MotoService.update(moto_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, moto_id):
        try:
            if self.get_bool_param(request, "hard", False):
                result = MotoService.hard_delete(moto_id)
            else:
                result = MotoService.soft_delete(moto_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class MotoKilometrajeView(BaseApiView):
    """PATCH /api/motos/<id>/kilometraje/"""

    def patch(self, request, moto_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "kilometraje")
            return self.success(MotoService.update_kilometraje(moto_id, data["kilometraje"]))
        except Exception as e:
            return handle_service_error(e)


class MotoClienteView(BaseApiView):
    """PATCH /api/motos/<id>/cliente/ - transfer ownership"""

    def patch(self, request, moto_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "cliente_id")
            return self.success(MotoService.transfer_cliente(moto_id, data["cliente_id"]))
        except Exception as e:
            return handle_service_error(e)


class MotoActivoView(BaseApiView):

    def patch(self, request, moto_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "activo")
            return self.success(MotoService.set_activo(moto_id, data["activo"]))
        except Exception as e:
            return handle_service_error(e)


class MotoMarcasView(BaseApiView):

    def get(self, request):
        try:
            return self.success(MotoService.marcas())
        except Exception as e:
            return handle_service_error(e)

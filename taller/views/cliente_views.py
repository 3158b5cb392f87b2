from taller.services import ClienteService
from taller.views.base import BaseApiView, handle_service_error


class ClienteListView(BaseApiView):
    """GET/POST /api/clientes/"""

    def get(self, request):
        try:
            page, per_page = self.get_page(request)
            dni = request.GET.get("dni")
            telefono = request.GET.get("telefono")
            if dni:
                result = ClienteService.get_by_dni(dni)
            elif telefono:
                result = ClienteService.get_by_telefono(telefono)
            else:
                result = ClienteService.list(
                    page=page,
                    per_page=per_page,
                    search=request.GET.get("search"),
                    activo=self.get_bool_param(request, "activo"),
                )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "nombre", "telefono")
            result = ClienteService.create(
                nombre=data["nombre"],
                telefono=data["telefono"],
                email=data.get("email"),
                dni=data.get("dni"),
                direccion=data.get("direccion", ""),
                activo=data.get("activo", True),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class ClienteDetailView(BaseApiView):
    """GET/PUT/DELETE /api/clientes/<id>/"""

    def get(self, request, cliente_id):
        try:
            return self.success(ClienteService.get(cliente_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, cliente_id):
        try:
            data = self.get_update_body(request, "cliente_id")
            return self.success(ClienteService.update(cliente_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, cliente_id):
        try:
            if self.get_bool_param(request, "hard", False):
                result = ClienteService.hard_delete(cliente_id)
            else:
                result = ClienteService.soft_delete(cliente_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class ClienteContactoView(BaseApiView):
    """PATCH /api/clientes/<id>/contacto/"""

    def patch(self, request, cliente_id):
        try:
            data = self.get_json_body(request)
            result = ClienteService.update_contact(
                cliente_id,
                telefono=data.get("telefono"),
                email=data.get("email"),
                direccion=data.get("direccion"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class ClienteActivoView(BaseApiView):
    """PATCH /api/clientes/<id>/activo/"""

    def patch(self, request, cliente_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "activo")
            return self.success(ClienteService.set_activo(cliente_id, data["activo"]))
        except Exception as e:
            return handle_service_error(e)


class ClienteStatsView(BaseApiView):

    def get(self, request):
        try:
            return self.success(ClienteService.stats())
        except Exception as e:
            return handle_service_error(e)

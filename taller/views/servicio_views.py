from taller.services import ServicioService
from taller.views.base import BaseApiView, handle_service_error


class ServicioListView(BaseApiView):
    """GET/POST /api/servicios/"""

    def get(self, request):
        try:
            codigo = request.GET.get("codigo")
            if codigo:
                return self.success(ServicioService.get_by_codigo(codigo))

            page, per_page = self.get_page(request)
            result = ServicioService.list(
                page=page,
                per_page=per_page,
                search=request.GET.get("search"),
                categoria=request.GET.get("categoria"),
                precio_min=request.GET.get("precio_min"),
                precio_max=request.GET.get("precio_max"),
                activo=self.get_bool_param(request, "activo"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "codigo", "nombre", "categoria")
            result = ServicioService.create(
                codigo=data["codigo"],
                nombre=data["nombre"],
                categoria=data["categoria"],
                precio_base=data.get("precio_base", "0"),
                tiempo_estimado_minutos=data.get("tiempo_estimado_minutos", 60),
                descripcion=data.get("descripcion", ""),
                activo=data.get("activo", True),
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class ServicioDetailView(BaseApiView):
    """GET/PUT/DELETE /api/servicios/<id>/"""

    def get(self, request, servicio_id):
        try:
            return self.success(ServicioService.get(servicio_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, servicio_id):
        try:
            data = self.get_update_body(request, "servicio_id")
            return self.success(ServicioService.update(servicio_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, servicio_id):
        try:
            if self.get_bool_param(request, "hard", False):
                result = ServicioService.hard_delete(servicio_id)
            else:
                result = ServicioService.soft_delete(servicio_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class ServicioPrecioView(BaseApiView):
    """PATCH /api/servicios/<id>/precio/"""

    def patch(self, request, servicio_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "precio_base")
            return self.success(ServicioService.update_precio_base(servicio_id, data["precio_base"]))
        except Exception as e:
            return handle_service_error(e)


class ServicioTiempoView(BaseApiView):
    """PATCH /api/servicios/<id>/tiempo/"""

    def patch(self, request, servicio_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "tiempo_estimado_minutos")
            result = ServicioService.update_tiempo_estimado(
                servicio_id, data["tiempo_estimado_minutos"]
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class ServicioActivoView(BaseApiView):

    def patch(self, request, servicio_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "activo")
            return self.success(ServicioService.set_activo(servicio_id, data["activo"]))
        except Exception as e:
            return handle_service_error(e)


class ServicioCategoriasView(BaseApiView):

    def get(self, request):
        try:
            return self.success(ServicioService.categorias())
        except Exception as e:
            return handle_service_error(e)


class ServicioPreciosCategoriaView(BaseApiView):
    """POST /api/servicios/categorias/precios/ {"categoria", "porcentaje"}"""

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "categoria", "porcentaje")
            result = ServicioService.update_precios_por_categoria(
                data["categoria"], data["porcentaje"]
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class ServicioBasicosView(BaseApiView):

    def get(self, request):
        try:
            return self.success(ServicioService.servicios_basicos())
        except Exception as e:
            return handle_service_error(e)

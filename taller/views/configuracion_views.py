from taller.services import ConfiguracionService
from taller.views.base import BaseApiView, handle_service_error


class ConfiguracionListView(BaseApiView):
    """GET/POST /api/configuracion/"""

    def get(self, request):
        try:
            result = ConfiguracionService.list(
                tipo_dato=request.GET.get("tipo_dato"),
                search=request.GET.get("search"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "clave")
            result = ConfiguracionService.set(
                data["clave"],
                data.get("valor"),
                tipo_dato=data.get("tipo_dato"),
                descripcion=data.get("descripcion"),
            )
            return self.success(result, 201 if result["created"] else 200)
        except Exception as e:
            return handle_service_error(e)


class ConfiguracionDetailView(BaseApiView):
    """GET/PUT/DELETE /api/configuracion/<clave>/"""

    def get(self, request, clave):
        try:
            return self.success(ConfiguracionService.get(clave))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, clave):
        try:
            data = self.get_json_body(request)
            result = ConfiguracionService.set(
                clave,
                data.get("valor"),
                tipo_dato=data.get("tipo_dato"),
                descripcion=data.get("descripcion"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, clave):
        try:
            return self.success(ConfiguracionService.delete(clave))
        except Exception as e:
            return handle_service_error(e)

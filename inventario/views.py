from inventario.services import RepuestoService, RepuestoMovimientoService, UsoRepuestoService
from taller.services import ValidationError
from taller.views.base import BaseApiView, handle_service_error


# ==================== REPUESTOS ====================

class RepuestoListView(BaseApiView):
    """GET/POST /api/inventario/repuestos/"""

    def get(self, request):
        try:
            codigo = request.GET.get("codigo")
            if codigo:
                return self.success(RepuestoService.get_by_codigo(codigo))

            page, per_page = self.get_page(request)
            result = RepuestoService.list(
                page=page,
                per_page=per_page,
                search=request.GET.get("search"),
                categoria=request.GET.get("categoria"),
                activo=self.get_bool_param(request, "activo"),
                low_stock=self.get_bool_param(request, "low_stock", False),
                sin_stock=self.get_bool_param(request, "sin_stock", False),
                precio_min=request.GET.get("precio_min"),
                precio_max=request.GET.get("precio_max"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "codigo", "nombre", "precio_unitario")
            result = RepuestoService.create(
                codigo=data["codigo"],
                nombre=data["nombre"],
                precio_unitario=data["precio_unitario"],
                categoria=data.get("categoria", ""),
                descripcion=data.get("descripcion", ""),
                stock_actual=data.get("stock_actual", 0),
                stock_minimo=data.get("stock_minimo", 5),
                activo=data.get("activo", True),
                usuario=request.usuario,
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class RepuestoDetailView(BaseApiView):
    """GET/PUT/DELETE /api/inventario/repuestos/<id>/"""

    def get(self, request, repuesto_id):
        try:
            return self.success(RepuestoService.get(repuesto_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, repuesto_id):
        try:
            data = self.get_update_body(request, "repuesto_id")
            return self.success(RepuestoService.update(repuesto_id, **data))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, repuesto_id):
        try:
            if self.get_bool_param(request, "hard", False):
                result = RepuestoService.hard_delete(repuesto_id)
            else:
                result = RepuestoService.soft_delete(repuesto_id)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class RepuestoStockView(BaseApiView):
    """POST /api/inventario/repuestos/<id>/stock/ {"accion": incrementar|decrementar|ajustar, "cantidad"}"""

    ACCIONES = {
        "incrementar": RepuestoService.increment_stock,
        "decrementar": RepuestoService.decrement_stock,
        "ajustar": RepuestoService.set_stock,
    }

    def post(self, request, repuesto_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "accion", "cantidad")
            accion = self.ACCIONES.get(str(data["accion"]).lower())
            if not accion:
                raise ValidationError(
                    f"Acción inválida. Válidas: {list(self.ACCIONES)}", "accion"
                )
            result = accion(
                repuesto_id, data["cantidad"], data.get("referencia", ""), request.usuario
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


class RepuestoActivoView(BaseApiView):

    def patch(self, request, repuesto_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "activo")
            return self.success(RepuestoService.set_activo(repuesto_id, data["activo"]))
        except Exception as e:
            return handle_service_error(e)


class RepuestoMovimientosView(BaseApiView):
    """GET /api/inventario/repuestos/<id>/movimientos/"""

    def get(self, request, repuesto_id):
        try:
            limit = self.get_int_param(request, "limit", 50)
            return self.success(RepuestoMovimientoService.history(repuesto_id, limit))
        except Exception as e:
            return handle_service_error(e)


class RepuestoCategoriasView(BaseApiView):

    def get(self, request):
        try:
            return self.success(RepuestoService.categorias())
        except Exception as e:
            return handle_service_error(e)


class RepuestoBajoStockView(BaseApiView):

    def get(self, request):
        try:
            return self.success(RepuestoService.low_stock())
        except Exception as e:
            return handle_service_error(e)


class RepuestoStatsView(BaseApiView):

    def get(self, request):
        try:
            return self.success(RepuestoService.stats())
        except Exception as e:
            return handle_service_error(e)


# ==================== MOVIMIENTOS ====================

class MovimientoListView(BaseApiView):
    """GET/POST /api/inventario/movimientos/"""

    def get(self, request):
        try:
            page, per_page = self.get_page(request)
            result = RepuestoMovimientoService.list(
                page=page,
                per_page=per_page,
                repuesto_id=self.get_int_param(request, "repuesto_id"),
                tipo_movimiento=request.GET.get("tipo_movimiento"),
                usuario_id=self.get_int_param(request, "usuario_id"),
                referencia=request.GET.get("referencia"),
                fecha_desde=request.GET.get("fecha_desde"),
                fecha_hasta=request.GET.get("fecha_hasta"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "repuesto_id", "tipo_movimiento", "cantidad")
            result = RepuestoMovimientoService.register(
                data["repuesto_id"],
                data["tipo_movimiento"],
                data["cantidad"],
                referencia=data.get("referencia", ""),
                usuario=request.usuario,
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class MovimientoDetailView(BaseApiView):

    def get(self, request, movimiento_id):
        try:
            return self.success(RepuestoMovimientoService.get(movimiento_id))
        except Exception as e:
            return handle_service_error(e)


class MovimientoResumenView(BaseApiView):

    def get(self, request):
        try:
            result = RepuestoMovimientoService.resumen_por_tipo(
                request.GET.get("fecha_desde"), request.GET.get("fecha_hasta")
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


# ==================== USOS ====================

class UsoListView(BaseApiView):
    """GET/POST /api/inventario/usos/"""

    def get(self, request):
        try:
            page, per_page = self.get_page(request, 50)
            result = UsoRepuestoService.list(
                page=page,
                per_page=per_page,
                orden_id=self.get_int_param(request, "orden_id"),
                repuesto_id=self.get_int_param(request, "repuesto_id"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            data = self.get_json_body(request)
            self.require(data, "orden_id", "repuesto_id", "cantidad")
            result = UsoRepuestoService.create(
                data["orden_id"],
                data["repuesto_id"],
                data["cantidad"],
                precio_unitario=data.get("precio_unitario"),
                usuario=request.usuario,
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class UsoDetailView(BaseApiView):
    """GET/PUT/DELETE /api/inventario/usos/<id>/"""

    def get(self, request, uso_id):
        try:
            return self.success(UsoRepuestoService.get(uso_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, uso_id):
        try:
            data = self.get_json_body(request)
            changes = {k: v for k, v in data.items() if k in ("cantidad", "precio_unitario")}
            return self.success(UsoRepuestoService.update(uso_id, usuario=request.usuario, **changes))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, uso_id):
        try:
            return self.success(UsoRepuestoService.delete(uso_id, usuario=request.usuario))
        except Exception as e:
            return handle_service_error(e)


class OrdenUsosView(BaseApiView):
    """GET/POST/DELETE /api/inventario/ordenes/<id>/usos/ - POST adds to an existing line"""

    def get(self, request, orden_id):
        try:
            result = UsoRepuestoService.list(orden_id=orden_id, per_page=100)
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "repuesto_id", "cantidad")
            result = UsoRepuestoService.increment_en_orden(
                orden_id, data["repuesto_id"], data["cantidad"], usuario=request.usuario
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, orden_id):
        try:
            return self.success(UsoRepuestoService.clear_orden(orden_id, usuario=request.usuario))
        except Exception as e:
            return handle_service_error(e)


class OrdenUsosClonarView(BaseApiView):
    """POST /api/inventario/ordenes/<id>/usos/clonar/ {"orden_origen_id"}"""

    def post(self, request, orden_id):
        try:
            data = self.get_json_body(request)
            self.require(data, "orden_origen_id")
            result = UsoRepuestoService.clone_to_orden(
                data["orden_origen_id"], orden_id, usuario=request.usuario
            )
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class VerificarStockView(BaseApiView):
    """GET /api/inventario/verificar-stock/?repuesto_id=&cantidad="""

    def get(self, request):
        try:
            repuesto_id = self.get_int_param(request, "repuesto_id")
            if not repuesto_id:
                raise ValidationError("repuesto_id es requerido", "repuesto_id")
            result = UsoRepuestoService.verificar_stock(
                repuesto_id, request.GET.get("cantidad", 1)
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

from django.urls import path
from . import views

app_name = "inventario"

urlpatterns = [
    path("repuestos/", views.RepuestoListView.as_view(), name="repuesto-list"),
    path("repuestos/categorias/", views.RepuestoCategoriasView.as_view(), name="repuesto-categorias"),
    path("repuestos/bajo-stock/", views.RepuestoBajoStockView.as_view(), name="repuesto-bajo-stock"),
    path("repuestos/stats/", views.RepuestoStatsView.as_view(), name="repuesto-stats"),
    path("repuestos/<int:repuesto_id>/", views.RepuestoDetailView.as_view(), name="repuesto-detail"),
    path("repuestos/<int:repuesto_id>/stock/", views.RepuestoStockView.as_view(), name="repuesto-stock"),
    path("repuestos/<int:repuesto_id>/activo/", views.RepuestoActivoView.as_view(), name="repuesto-activo"),
    path("repuestos/<int:repuesto_id>/movimientos/", views.RepuestoMovimientosView.as_view(), name="repuesto-movimientos"),

    path("movimientos/", views.MovimientoListView.as_view(), name="movimiento-list"),
    path("movimientos/resumen/", views.MovimientoResumenView.as_view(), name="movimiento-resumen"),
    path("movimientos/<int:movimiento_id>/", views.MovimientoDetailView.as_view(), name="movimiento-detail"),

    path("usos/", views.UsoListView.as_view(), name="uso-list"),
    path("usos/<int:uso_id>/", views.UsoDetailView.as_view(), name="uso-detail"),
    path("ordenes/<int:orden_id>/usos/", views.OrdenUsosView.as_view(), name="orden-usos"),
    path("ordenes/<int:orden_id>/usos/clonar/", views.OrdenUsosClonarView.as_view(), name="orden-usos-clonar"),
    path("verificar-stock/", views.VerificarStockView.as_view(), name="verificar-stock"),
]

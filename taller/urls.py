from django.urls import path
from taller.views import (
    auth_views, usuario_views, cliente_views, moto_views, servicio_views,
    orden_views, detalle_views, pago_views, configuracion_views,
)


app_name = 'taller'


urlpatterns = [
    path('auth/login/', auth_views.LoginView.as_view(), name='login'),
    path('auth/logout/', auth_views.LogoutView.as_view(), name='logout'),
    path('auth/validate/', auth_views.ValidateTokenView.as_view(), name='validate'),
    path('auth/me/', auth_views.MeView.as_view(), name='me'),

    path('usuarios/', usuario_views.UsuarioListView.as_view(), name='usuario-list'),
    path('usuarios/mecanicos/', usuario_views.MecanicoListView.as_view(), name='usuario-mecanicos'),
    path('usuarios/stats/', usuario_views.UsuarioStatsView.as_view(), name='usuario-stats'),
    path('usuarios/<int:usuario_id>/', usuario_views.UsuarioDetailView.as_view(), name='usuario-detail'),
    path('usuarios/<int:usuario_id>/activo/', usuario_views.UsuarioActivoView.as_view(), name='usuario-activo'),
    path('usuarios/<int:usuario_id>/password/', usuario_views.UsuarioPasswordView.as_view(), name='usuario-password'),

    path('clientes/', cliente_views.ClienteListView.as_view(), name='cliente-list'),
    path('clientes/stats/', cliente_views.ClienteStatsView.as_view(), name='cliente-stats'),
    path('clientes/<int:cliente_id>/', cliente_views.ClienteDetailView.as_view(), name='cliente-detail'),
    path('clientes/<int:cliente_id>/contacto/', cliente_views.ClienteContactoView.as_view(), name='cliente-contacto'),
    path('clientes/<int:cliente_id>/activo/', cliente_views.ClienteActivoView.as_view(), name='cliente-activo'),

    path('motos/', moto_views.MotoListView.as_view(), name='moto-list'),
    path('motos/marcas/', moto_views.MotoMarcasView.as_view(), name='moto-marcas'),
    path('motos/<int:moto_id>/', moto_views.MotoDetailView.as_view(), name='moto-detail'),
    path('motos/<int:moto_id>/kilometraje/', moto_views.MotoKilometrajeView.as_view(), name='moto-kilometraje'),
    path('motos/<int:moto_id>/cliente/', moto_views.MotoClienteView.as_view(), name='moto-cliente'),
    path('motos/<int:moto_id>/activo/', moto_views.MotoActivoView.as_view(), name='moto-activo'),

    path('servicios/', servicio_views.ServicioListView.as_view(), name='servicio-list'),
    path('servicios/categorias/', servicio_views.ServicioCategoriasView.as_view(), name='servicio-categorias'),
    path('servicios/categorias/precios/', servicio_views.ServicioPreciosCategoriaView.as_view(), name='servicio-categoria-precios'),
    path('servicios/basicos/', servicio_views.ServicioBasicosView.as_view(), name='servicio-basicos'),
    path('servicios/<int:servicio_id>/', servicio_views.ServicioDetailView.as_view(), name='servicio-detail'),
    path('servicios/<int:servicio_id>/precio/', servicio_views.ServicioPrecioView.as_view(), name='servicio-precio'),
    path('servicios/<int:servicio_id>/tiempo/', servicio_views.ServicioTiempoView.as_view(), name='servicio-tiempo'),
    path('servicios/<int:servicio_id>/activo/', servicio_views.ServicioActivoView.as_view(), name='servicio-activo'),

    path('ordenes/', orden_views.OrdenListView.as_view(), name='orden-list'),
    path('ordenes/stats/', orden_views.OrdenStatsView.as_view(), name='orden-stats'),
    path('ordenes/numero/<str:numero_orden>/', orden_views.OrdenNumeroView.as_view(), name='orden-numero'),
    path('ordenes/<int:orden_id>/', orden_views.OrdenDetailView.as_view(), name='orden-detail'),
    path('ordenes/<int:orden_id>/estado/', orden_views.OrdenEstadoView.as_view(), name='orden-estado'),
    path('ordenes/<int:orden_id>/mecanico/', orden_views.OrdenMecanicoView.as_view(), name='orden-mecanico'),
    path('ordenes/<int:orden_id>/prioridad/', orden_views.OrdenPrioridadView.as_view(), name='orden-prioridad'),
    path('ordenes/<int:orden_id>/diagnostico/', orden_views.OrdenDiagnosticoView.as_view(), name='orden-diagnostico'),
    path('ordenes/<int:orden_id>/fecha-estimada/', orden_views.OrdenFechaEstimadaView.as_view(), name='orden-fecha-estimada'),
    path('ordenes/<int:orden_id>/estado-pago/', orden_views.OrdenEstadoPagoView.as_view(), name='orden-estado-pago'),
    path('ordenes/<int:orden_id>/recalcular/', orden_views.OrdenRecalcularView.as_view(), name='orden-recalcular'),
    path('ordenes/<int:orden_id>/historial/', orden_views.OrdenHistorialView.as_view(), name='orden-historial'),
    path('historial/', orden_views.HistorialListView.as_view(), name='historial-list'),

    path('ordenes/<int:orden_id>/servicios/', detalle_views.OrdenServiciosView.as_view(), name='orden-servicios'),
    path('ordenes/<int:orden_id>/servicios/clonar/', detalle_views.OrdenServiciosClonarView.as_view(), name='orden-servicios-clonar'),
    path('detalles/<int:detalle_id>/', detalle_views.DetalleView.as_view(), name='detalle-detail'),

    path('pagos/', pago_views.PagoListView.as_view(), name='pago-list'),
    path('pagos/resumen/metodos/', pago_views.PagoResumenMetodosView.as_view(), name='pago-resumen-metodos'),
    path('pagos/resumen/diario/', pago_views.PagoResumenDiarioView.as_view(), name='pago-resumen-diario'),
    path('pagos/orden/<int:orden_id>/resumen/', pago_views.PagoResumenOrdenView.as_view(), name='pago-resumen-orden'),
    path('pagos/<int:pago_id>/', pago_views.PagoDetailView.as_view(), name='pago-detail'),

    path('configuracion/', configuracion_views.ConfiguracionListView.as_view(), name='configuracion-list'),
    path('configuracion/<str:clave>/', configuracion_views.ConfiguracionDetailView.as_view(), name='configuracion-detail'),
]

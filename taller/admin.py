from django import forms
from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _
from unfold.admin import ModelAdmin, TabularInline
from unfold.decorators import display
from unfold.contrib.filters.admin import (
    RangeDateFilter,
    RangeDateTimeFilter,
    RangeNumericFilter,
)

from .models import (
    Usuario, Cliente, Moto, Servicio, OrdenTrabajo, DetalleOrden,
    OrdenHistorial, Pago, Configuracion,
)


class UsuarioAdminForm(forms.ModelForm):
    password = forms.CharField(
        label=_("Password"),
        widget=forms.PasswordInput(),
        help_text=_("Leave empty to keep the current password."),
        required=False,
    )

    class Meta:
        model = Usuario
        exclude = ("password_hash",)

    def save(self, commit=True):
        usuario = super().save(commit=False)
        password = self.cleaned_data.get("password")
        if password:
            usuario.set_password(password)
        if commit:
            usuario.save()
        return usuario


@admin.register(Usuario)
class UsuarioAdmin(ModelAdmin):
    form = UsuarioAdminForm
    list_display = ["id", "username", "nombre_completo", "email", "rol_badge", "activo_badge", "ultimo_login"]
    list_filter = ["rol", "activo", ("ultimo_login", RangeDateTimeFilter)]
    search_fields = ["username", "nombre_completo", "email"]
    list_filter_submit = True
    readonly_fields = ["ultimo_login", "created_at", "updated_at"]

    fieldsets = (
        (_("Datos"), {"fields": ("username", "nombre_completo", "email")}),
        (_("Acceso"), {"fields": ("rol", "activo", "password")}),
        (_("Actividad"), {"fields": ("ultimo_login", "created_at", "updated_at")}),
    )

    @display(description=_("Rol"), label=True)
    def rol_badge(self, obj):
        colors = {
            Usuario.Rol.ADMIN: "danger",
            Usuario.Rol.MECANICO: "info",
            Usuario.Rol.RECEPCIONISTA: "success",
        }
        return colors.get(obj.rol, "info"), obj.get_rol_display()

    @display(description=_("Activo"), label=True)
    def activo_badge(self, obj):
        return ("success", _("Sí")) if obj.activo else ("danger", _("No"))


class MotoInline(TabularInline):
    model = Moto
    extra = 0
    fields = ("placa", "marca", "modelo", "anio", "activo")
    show_change_link = True


@admin.register(Cliente)
class ClienteAdmin(ModelAdmin):
    list_display = ["id", "nombre", "telefono", "dni", "email", "motos_count", "activo"]
    list_filter = ["activo", ("created_at", RangeDateFilter)]
    search_fields = ["nombre", "telefono", "dni", "email"]
    list_filter_submit = True
    inlines = [MotoInline]

    @display(description=_("Motos"))
    def motos_count(self, obj):
        return obj.motos.count()


@admin.register(Moto)
class MotoAdmin(ModelAdmin):
    list_display = ["id", "placa", "marca", "modelo", "anio", "cliente_link", "kilometraje", "activo"]
    list_filter = ["marca", "activo", ("kilometraje", RangeNumericFilter)]
    search_fields = ["placa", "vin", "marca", "modelo", "cliente__nombre"]
    list_filter_submit = True
    autocomplete_fields = ["cliente"]

    @display(description=_("Cliente"))
    def cliente_link(self, obj):
        url = reverse("admin:taller_cliente_change", args=[obj.cliente_id])
        return format_html('<a href="{}">{}</a>', url, obj.cliente.nombre)


@admin.register(Servicio)
class ServicioAdmin(ModelAdmin):
    list_display = ["codigo", "nombre", "categoria", "precio_display", "tiempo_estimado_minutos", "activo"]
    list_filter = ["categoria", "activo", ("precio_base", RangeNumericFilter)]
    search_fields = ["codigo", "nombre", "descripcion"]
    list_filter_submit = True

    @display(description=_("Precio base"), ordering="precio_base")
    def precio_display(self, obj):
        return f"S/ {obj.precio_base:.2f}"


class DetalleOrdenInline(TabularInline):
    model = DetalleOrden
    extra = 0
    fields = ("servicio", "precio_aplicado", "observaciones")
    autocomplete_fields = ["servicio"]


class OrdenHistorialInline(TabularInline):
    model = OrdenHistorial
    extra = 0
    fields = ("fecha_cambio", "estado_anterior", "estado_nuevo", "comentario", "usuario_cambio")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class PagoInline(TabularInline):
    model = Pago
    extra = 0
    fields = ("fecha_pago", "monto", "metodo", "referencia")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(OrdenTrabajo)
class OrdenTrabajoAdmin(ModelAdmin):
    list_display = [
        "numero_orden", "moto", "estado_badge", "prioridad", "mecanico_asignado",
        "total_display", "estado_pago_badge", "fecha_ingreso",
    ]
    list_filter = [
        "estado",
        "prioridad",
        "estado_pago",
        "mecanico_asignado",
        ("fecha_ingreso", RangeDateTimeFilter),
        ("total_orden", RangeNumericFilter),
    ]
    search_fields = ["numero_orden", "moto__placa", "moto__cliente__nombre", "descripcion_problema"]
    list_filter_submit = True
    list_fullwidth = True
    inlines = [DetalleOrdenInline, PagoInline, OrdenHistorialInline]
    readonly_fields = [
        "numero_orden", "total_servicios", "total_repuestos", "total_orden",
        "estado_pago", "created_at", "updated_at",
    ]
    autocomplete_fields = ["moto"]

    fieldsets = (
        (_("Orden"), {
            "fields": ("numero_orden", "moto", "usuario_creador", "mecanico_asignado", "estado", "prioridad"),
        }),
        (_("Trabajo"), {
            "fields": ("descripcion_problema", "diagnostico", "observaciones", "fecha_estimada_entrega"),
        }),
        (_("Totales"), {
            "fields": ("total_servicios", "total_repuestos", "total_orden", "estado_pago"),
        }),
        (_("Fechas"), {
            "fields": ("fecha_ingreso", "created_at", "updated_at"),
        }),
    )

    @display(description=_("Estado"), label=True)
    def estado_badge(self, obj):
        colors = {
            OrdenTrabajo.Estado.RECIBIDA: "info",
            OrdenTrabajo.Estado.DIAGNOSTICADA: "info",
            OrdenTrabajo.Estado.EN_PROCESO: "warning",
            OrdenTrabajo.Estado.COMPLETADA: "success",
            OrdenTrabajo.Estado.ENTREGADA: "success",
            OrdenTrabajo.Estado.CANCELADA: "danger",
        }
        return colors.get(obj.estado, "info"), obj.get_estado_display()

    @display(description=_("Pago"), label=True)
    def estado_pago_badge(self, obj):
        colors = {
            OrdenTrabajo.EstadoPago.PENDIENTE: "danger",
            OrdenTrabajo.EstadoPago.PARCIAL: "warning",
            OrdenTrabajo.EstadoPago.PAGADO: "success",
        }
        return colors.get(obj.estado_pago, "info"), obj.get_estado_pago_display()

    @display(description=_("Total"), ordering="total_orden")
    def total_display(self, obj):
        return f"S/ {obj.total_orden:.2f}"


@admin.register(Pago)
class PagoAdmin(ModelAdmin):
    list_display = ["id", "orden", "monto", "metodo", "referencia", "fecha_pago"]
    list_filter = ["metodo", ("fecha_pago", RangeDateTimeFilter), ("monto", RangeNumericFilter)]
    search_fields = ["orden__numero_orden", "referencia"]
    list_filter_submit = True

    # Totals and estado_pago are maintained by the API
    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Configuracion)
class ConfiguracionAdmin(ModelAdmin):
    list_display = ["clave", "valor", "tipo_dato", "updated_at"]
    list_filter = ["tipo_dato"]
    search_fields = ["clave", "descripcion"]

from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from unfold.admin import ModelAdmin, TabularInline
from unfold.decorators import display
from unfold.contrib.filters.admin import RangeDateTimeFilter, RangeNumericFilter

from .models import Repuesto, RepuestoMovimiento, UsoRepuesto


class RepuestoMovimientoInline(TabularInline):
    model = RepuestoMovimiento
    extra = 0
    fields = ("fecha_movimiento", "tipo_movimiento", "cantidad", "stock_anterior", "stock_nuevo", "referencia")
    readonly_fields = fields
    can_delete = False
    ordering = ("-fecha_movimiento",)

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Repuesto)
class RepuestoAdmin(ModelAdmin):
    list_display = ["codigo", "nombre", "categoria", "stock_badge", "stock_minimo", "precio_display", "activo"]
    list_filter = ["categoria", "activo", ("precio_unitario", RangeNumericFilter)]
    search_fields = ["codigo", "nombre", "descripcion"]
    list_filter_submit = True
    inlines = [RepuestoMovimientoInline]
    # Stock changes must go through movements
    readonly_fields = ["stock_actual", "created_at", "updated_at"]

    @display(description=_("Stock"), label=True, ordering="stock_actual")
    def stock_badge(self, obj):
        if obj.stock_actual == 0:
            return "danger", obj.stock_actual
        if obj.stock_bajo:
            return "warning", obj.stock_actual
        return "success", obj.stock_actual

    @display(description=_("Precio"), ordering="precio_unitario")
    def precio_display(self, obj):
        return f"S/ {obj.precio_unitario:.2f}"


@admin.register(RepuestoMovimiento)
class RepuestoMovimientoAdmin(ModelAdmin):
    list_display = [
        "fecha_movimiento", "repuesto", "tipo_movimiento", "cantidad",
        "stock_anterior", "stock_nuevo", "referencia", "usuario_movimiento",
    ]
    list_filter = ["tipo_movimiento", ("fecha_movimiento", RangeDateTimeFilter)]
    search_fields = ["repuesto__codigo", "repuesto__nombre", "referencia"]
    list_filter_submit = True

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(UsoRepuesto)
class UsoRepuestoAdmin(ModelAdmin):
    list_display = ["id", "orden", "repuesto", "cantidad", "precio_unitario", "subtotal", "created_at"]
    search_fields = ["orden__numero_orden", "repuesto__codigo", "repuesto__nombre"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

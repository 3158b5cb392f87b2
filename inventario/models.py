from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Repuesto(models.Model):
    codigo = models.CharField(max_length=30, unique=True)
    nombre = models.CharField(max_length=100)
    descripcion = models.TextField(blank=True, default="")
    categoria = models.CharField(max_length=50, blank=True, default="", db_index=True)

    # Stock thresholds
    stock_actual = models.PositiveIntegerField(default=0)
    stock_minimo = models.PositiveIntegerField(default=5)

    precio_unitario = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(Decimal("0"))],
    )
    activo = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["nombre"]

    def __str__(self):
        return f"{self.codigo} - {self.nombre}"

    @property
    def stock_bajo(self):
        return self.stock_actual <= self.stock_minimo


class RepuestoMovimiento(models.Model):
    class TipoMovimiento(models.TextChoices):
        ENTRADA = "ENTRADA", "Entrada"
        SALIDA = "SALIDA", "Salida"
        AJUSTE = "AJUSTE", "Ajuste"
        DEVOLUCION = "DEVOLUCION", "Devolución"
        TRANSFERENCIA = "TRANSFERENCIA", "Transferencia"
        MERMA = "MERMA", "Merma"
        INVENTARIO = "INVENTARIO", "Inventario"

    repuesto = models.ForeignKey(
        Repuesto, on_delete=models.PROTECT, related_name="movimientos"
    )
    tipo_movimiento = models.CharField(
        max_length=20, choices=TipoMovimiento.choices, db_index=True
    )
    cantidad = models.PositiveIntegerField()
    stock_anterior = models.PositiveIntegerField()
    stock_nuevo = models.PositiveIntegerField()
    referencia = models.CharField(max_length=100, blank=True, default="")
    usuario_movimiento = models.ForeignKey(
        "taller.Usuario",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="movimientos_repuesto",
    )
    fecha_movimiento = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-fecha_movimiento", "-id"]
        indexes = [
            models.Index(fields=["repuesto", "fecha_movimiento"], name="movimiento_repuesto_fecha_idx"),
            models.Index(fields=["tipo_movimiento", "fecha_movimiento"], name="movimiento_tipo_fecha_idx"),
        ]

    def __str__(self):
        return f"{self.repuesto.codigo} | {self.get_tipo_movimiento_display()} {self.cantidad}"


class UsoRepuesto(models.Model):
    orden = models.ForeignKey(
        "taller.OrdenTrabajo", on_delete=models.CASCADE, related_name="usos_repuesto"
    )
    repuesto = models.ForeignKey(Repuesto, on_delete=models.PROTECT, related_name="usos")
    cantidad = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    precio_unitario = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.orden.numero_orden} | {self.repuesto.codigo} x{self.cantidad}"

    def save(self, *args, **kwargs):
        # subtotal is always derived from price and quantity
        self.subtotal = (self.precio_unitario or Decimal("0")) * self.cantidad
        super().save(*args, **kwargs)

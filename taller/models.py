"""
Taller models: users, clients, motorcycles, services catalog, work orders,
payments and key/value configuration.
"""

from decimal import Decimal

from django.contrib.auth.hashers import make_password, check_password
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Usuario(models.Model):
    class Rol(models.TextChoices):
        ADMIN = "ADMIN", "Administrador"
        MECANICO = "MECANICO", "Mecánico"
        RECEPCIONISTA = "RECEPCIONISTA", "Recepcionista"

    username = models.CharField(max_length=50, unique=True)
    email = models.EmailField(max_length=100, unique=True)
    password_hash = models.CharField(max_length=255)
    nombre_completo = models.CharField(max_length=100)
    rol = models.CharField(max_length=20, choices=Rol.choices)
    activo = models.BooleanField(default=True, db_index=True)
    ultimo_login = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["username"]

    def __str__(self):
        return f"{self.username} ({self.get_rol_display()})"

    def set_password(self, raw_password):
        self.password_hash = make_password(raw_password)

    def check_password(self, raw_password):
        return check_password(raw_password, self.password_hash)


class Cliente(models.Model):
    nombre = models.CharField(max_length=100)
    telefono = models.CharField(max_length=20)
    email = models.EmailField(max_length=100, null=True, blank=True)
    dni = models.CharField(max_length=20, unique=True, null=True, blank=True)
    direccion = models.TextField(blank=True, default="")
    activo = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["nombre"]

    def __str__(self):
        return f"{self.nombre} ({self.telefono})"


class Moto(models.Model):
    cliente = models.ForeignKey(Cliente, on_delete=models.PROTECT, related_name="motos")
    marca = models.CharField(max_length=50)
    modelo = models.CharField(max_length=50)
    anio = models.PositiveIntegerField(null=True, blank=True)
    placa = models.CharField(max_length=20, unique=True)
    vin = models.CharField(max_length=50, unique=True, null=True, blank=True)
    color = models.CharField(max_length=30, blank=True, default="")
    kilometraje = models.PositiveIntegerField(default=0)
    activo = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["placa"]

    def __str__(self):
        return f"{self.placa} | {self.marca} {self.modelo}"


class Servicio(models.Model):
    codigo = models.CharField(max_length=20, unique=True)
    nombre = models.CharField(max_length=100)
    descripcion = models.TextField(blank=True, default="")
    categoria = models.CharField(max_length=50, db_index=True)
    precio_base = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(Decimal("0"))],
    )
    tiempo_estimado_minutos = models.PositiveIntegerField(
        default=60, validators=[MinValueValidator(1)]
    )
    activo = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["categoria", "nombre"]

    def __str__(self):
        return f"{self.codigo} - {self.nombre}"


class OrdenTrabajo(models.Model):
    class Estado(models.TextChoices):
        RECIBIDA = "RECIBIDA", "Recibida"
        DIAGNOSTICADA = "DIAGNOSTICADA", "Diagnosticada"
        EN_PROCESO = "EN_PROCESO", "En proceso"
        COMPLETADA = "COMPLETADA", "Completada"
        ENTREGADA = "ENTREGADA", "Entregada"
        CANCELADA = "CANCELADA", "Cancelada"

    class Prioridad(models.TextChoices):
        BAJA = "BAJA", "Baja"
        NORMAL = "NORMAL", "Normal"
        ALTA = "ALTA", "Alta"
        URGENTE = "URGENTE", "Urgente"

    class EstadoPago(models.TextChoices):
        PENDIENTE = "PENDIENTE", "Pendiente"
        PARCIAL = "PARCIAL", "Parcial"
        PAGADO = "PAGADO", "Pagado"

    ESTADOS_FINALES = (Estado.ENTREGADA, Estado.CANCELADA)

    numero_orden = models.CharField(max_length=20, unique=True)
    moto = models.ForeignKey(Moto, on_delete=models.PROTECT, related_name="ordenes")
    usuario_creador = models.ForeignKey(
        Usuario, on_delete=models.PROTECT, related_name="ordenes_creadas"
    )
    mecanico_asignado = models.ForeignKey(
        Usuario,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ordenes_asignadas",
    )
    fecha_ingreso = models.DateTimeField(default=timezone.now, db_index=True)
    fecha_estimada_entrega = models.DateField(null=True, blank=True)
    estado = models.CharField(
        max_length=20, choices=Estado.choices, default=Estado.RECIBIDA, db_index=True
    )
    prioridad = models.CharField(
        max_length=20, choices=Prioridad.choices, default=Prioridad.NORMAL
    )
    descripcion_problema = models.TextField()
    diagnostico = models.TextField(blank=True, default="")
    observaciones = models.TextField(blank=True, default="")

    # Totals
    total_servicios = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_repuestos = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_orden = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    estado_pago = models.CharField(
        max_length=20, choices=EstadoPago.choices, default=EstadoPago.PENDIENTE
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-fecha_ingreso"]
        indexes = [
            models.Index(fields=["estado", "prioridad"], name="orden_estado_prioridad_idx"),
        ]

    def __str__(self):
        return f"{self.numero_orden} | {self.get_estado_display()}"

    @property
    def es_final(self):
        return self.estado in self.ESTADOS_FINALES


class DetalleOrden(models.Model):
    orden = models.ForeignKey(OrdenTrabajo, on_delete=models.CASCADE, related_name="detalles")
    servicio = models.ForeignKey(Servicio, on_delete=models.PROTECT, related_name="detalles")
    precio_aplicado = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    observaciones = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["orden", "servicio"], name="unique_servicio_por_orden"),
        ]

    def __str__(self):
        return f"{self.orden.numero_orden} | {self.servicio.codigo}"


class OrdenHistorial(models.Model):
    orden = models.ForeignKey(OrdenTrabajo, on_delete=models.CASCADE, related_name="historial")
    estado_anterior = models.CharField(
        max_length=20, choices=OrdenTrabajo.Estado.choices, null=True, blank=True
    )
    estado_nuevo = models.CharField(max_length=20, choices=OrdenTrabajo.Estado.choices)
    comentario = models.TextField(blank=True, default="")
    usuario_cambio = models.ForeignKey(
        Usuario,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cambios_orden",
    )
    fecha_cambio = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["fecha_cambio", "id"]
        verbose_name_plural = "orden historial"

    def __str__(self):
        return f"{self.orden.numero_orden}: {self.estado_anterior or '-'} -> {self.estado_nuevo}"


class Pago(models.Model):
    class Metodo(models.TextChoices):
        EFECTIVO = "EFECTIVO", "Efectivo"
        TARJETA = "TARJETA", "Tarjeta"
        TRANSFERENCIA = "TRANSFERENCIA", "Transferencia"
        YAPE = "YAPE", "Yape"
        PLIN = "PLIN", "Plin"

    orden = models.ForeignKey(OrdenTrabajo, on_delete=models.PROTECT, related_name="pagos")
    monto = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    fecha_pago = models.DateTimeField(default=timezone.now, db_index=True)
    metodo = models.CharField(max_length=20, choices=Metodo.choices)
    referencia = models.CharField(max_length=100, blank=True, default="")
    observaciones = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-fecha_pago"]

    def __str__(self):
        return f"{self.orden.numero_orden} | {self.monto} ({self.metodo})"


class Configuracion(models.Model):
    class TipoDato(models.TextChoices):
        STRING = "STRING", "Texto"
        INTEGER = "INTEGER", "Entero"
        DECIMAL = "DECIMAL", "Decimal"
        BOOLEAN = "BOOLEAN", "Booleano"

    clave = models.CharField(max_length=100, primary_key=True)
    valor = models.TextField()
    descripcion = models.TextField(blank=True, default="")
    tipo_dato = models.CharField(
        max_length=20, choices=TipoDato.choices, default=TipoDato.STRING
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["clave"]
        verbose_name_plural = "configuraciones"

    def __str__(self):
        return f"{self.clave}={self.valor}"

"""
Taller Services - workshop business logic

Usage:
    from taller.services import OrdenTrabajoService, PagoService

    # Open a work order
    result = OrdenTrabajoService.create(moto_id=1, descripcion_problema="No arranca", usuario_creador=user)

    # Register a payment
    PagoService.create(orden_id=1, monto="50.00", metodo="EFECTIVO")
"""

# Base utilities
from taller.services.base_service import (
    ServiceError,
    ValidationError,
    NotFoundError,
    BusinessRuleError,
    InsufficientStockError,
    AuthenticationError,
    PermissionDeniedError,
    success_response,
    paginate_queryset,
    to_decimal,
    to_int,
    to_bool,
    generate_number,
    BaseService,
)

# Users & auth
from .usuario_service import UsuarioService
from .auth_service import AuthService

# Customers & catalog
from .cliente_service import ClienteService
from .moto_service import MotoService
from .servicio_service import ServicioService

# Work orders
from .orden_service import OrdenTrabajoService, OrdenHistorialService
from .detalle_service import DetalleOrdenService
from .pago_service import PagoService

# Settings
from .configuracion_service import ConfiguracionService


__all__ = [
    # Base
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "BusinessRuleError",
    "InsufficientStockError",
    "AuthenticationError",
    "PermissionDeniedError",
    "success_response",
    "paginate_queryset",
    "to_decimal",
    "to_int",
    "to_bool",
    "generate_number",
    "BaseService",

    # Users & auth
    "UsuarioService",
    "AuthService",

    # Customers & catalog
    "ClienteService",
    "MotoService",
    "ServicioService",

    # Work orders
    "OrdenTrabajoService",
    "OrdenHistorialService",
    "DetalleOrdenService",
    "PagoService",

    # Settings
    "ConfiguracionService",
]

"""
Inventario Services - spare parts stock, movements and order usage

Usage:
    from inventario.services import UsoRepuestoService, RepuestoService

    # Consume parts on a work order (decrements stock, writes a SALIDA movement)
    UsoRepuestoService.create(orden_id=1, repuesto_id=3, cantidad=2, usuario=user)

    # Receive stock
    RepuestoService.increment_stock(repuesto_id=3, cantidad=10, referencia="Factura 001-123")
"""

from .movimiento_service import RepuestoMovimientoService
from .repuesto_service import RepuestoService
from .uso_service import UsoRepuestoService


__all__ = [
    "RepuestoMovimientoService",
    "RepuestoService",
    "UsoRepuestoService",
]

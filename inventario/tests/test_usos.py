from decimal import Decimal
from unittest import mock

from inventario.models import RepuestoMovimiento, UsoRepuesto
from inventario.services import RepuestoService, RepuestoMovimientoService, UsoRepuestoService
from taller.models import OrdenTrabajo
from taller.services import (
    OrdenTrabajoService, DetalleOrdenService,
    ValidationError, BusinessRuleError, InsufficientStockError, NotFoundError,
)
from inventario.tests.base import BaseInventarioTestCase

Tipo = RepuestoMovimiento.TipoMovimiento


class UsoRepuestoCreateTests(BaseInventarioTestCase):
    def test_uso_descuenta_stock_y_registra_salida(self):
        result = UsoRepuestoService.create(self.orden.id, self.repuesto.id, 3, usuario=self.mecanico)
        self.repuesto.refresh_from_db()

        self.assertEqual(self.repuesto.stock_actual, 7)
        self.assertEqual(result["stock_actual"], 7)

        movimiento = RepuestoMovimiento.objects.get(repuesto=self.repuesto)
        self.assertEqual(movimiento.tipo_movimiento, Tipo.SALIDA)
        self.assertEqual(movimiento.cantidad, 3)
        self.assertEqual(movimiento.stock_anterior, 10)
        self.assertEqual(movimiento.stock_nuevo, 7)
        self.assertEqual(movimiento.referencia, f"Uso en orden: {self.orden.numero_orden}")
        self.assertEqual(movimiento.usuario_movimiento, self.mecanico)

    def test_precio_por_defecto_y_totales(self):
        DetalleOrdenService.add_servicio(self.orden.id, self.servicio.id)
        result = UsoRepuestoService.create(self.orden.id, self.repuesto.id, 2)
        self.orden.refresh_from_db()

        self.assertEqual(result["uso"]["precio_unitario"], "12.50")
        self.assertEqual(Decimal(result["uso"]["subtotal"]), Decimal("25.00"))
        self.assertEqual(self.orden.total_repuestos, Decimal("25.00"))
        self.assertEqual(self.orden.total_orden, Decimal("70.00"))

    def test_precio_explicito(self):
        result = UsoRepuestoService.create(self.orden.id, self.repuesto.id, 2, precio_unitario="10")
        self.assertEqual(Decimal(result["uso"]["subtotal"]), Decimal("20"))

    def test_stock_insuficiente_no_deja_rastro(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            UsoRepuestoService.create(self.orden.id, self.repuesto.id, 11)

        self.assertEqual(ctx.exception.message, "Stock insuficiente. Disponible: 10, Solicitado: 11")
        self.assertEqual(ctx.exception.details["available"], 10)
        self.repuesto.refresh_from_db()
        self.assertEqual(self.repuesto.stock_actual, 10)
        self.assertFalse(RepuestoMovimiento.objects.exists())
        self.assertFalse(UsoRepuesto.objects.exists())

    def test_todo_el_stock(self):
        UsoRepuestoService.create(self.orden.id, self.repuesto.id, 10)
        self.repuesto.refresh_from_db()
        self.assertEqual(self.repuesto.stock_actual, 0)

    def test_cantidad_invalida(self):
        for cantidad in (0, -2, "dos"):
            with self.assertRaises(ValidationError):
                UsoRepuestoService.create(self.orden.id, self.repuesto.id, cantidad)

    def test_repuesto_inexistente(self):
        with self.assertRaises(NotFoundError):
            UsoRepuestoService.create(self.orden.id, 99999, 1)

    def test_repuesto_inactivo(self):
        self.repuesto.activo = False
        self.repuesto.save()
        with self.assertRaises(BusinessRuleError):
            UsoRepuestoService.create(self.orden.id, self.repuesto.id, 1)

    def test_orden_final_rechazada(self):
        OrdenTrabajoService.change_estado(self.orden.id, OrdenTrabajo.Estado.ENTREGADA)
        with self.assertRaises(BusinessRuleError):
            UsoRepuestoService.create(self.orden.id, self.repuesto.id, 1)
        self.repuesto.refresh_from_db()
        self.assertEqual(self.repuesto.stock_actual, 10)


class UsoRepuestoChangeTests(BaseInventarioTestCase):
    def setUp(self):
        super().setUp()
        result = UsoRepuestoService.create(self.orden.id, self.repuesto.id, 4)
        self.uso_id = result["uso"]["id"]

    def test_aumentar_cantidad_descuenta_diferencia(self):
        UsoRepuestoService.update(self.uso_id, cantidad=6)
        self.repuesto.refresh_from_db()

        self.assertEqual(self.repuesto.stock_actual, 4)
        ultimo = RepuestoMovimiento.objects.filter(repuesto=self.repuesto).first()
        self.assertEqual((ultimo.tipo_movimiento, ultimo.cantidad), (Tipo.SALIDA, 2))

    def test_reducir_cantidad_devuelve_diferencia(self):
        UsoRepuestoService.update(self.uso_id, cantidad=1)
        self.repuesto.refresh_from_db()

        self.assertEqual(self.repuesto.stock_actual, 9)
        ultimo = RepuestoMovimiento.objects.filter(repuesto=self.repuesto).first()
        self.assertEqual((ultimo.tipo_movimiento, ultimo.cantidad), (Tipo.DEVOLUCION, 3))
        self.assertEqual(ultimo.referencia, f"Devolución de orden: {self.orden.numero_orden}")

    def test_aumento_sin_stock_suficiente(self):
        with self.assertRaises(InsufficientStockError):
            UsoRepuestoService.update(self.uso_id, cantidad=11)
        self.assertEqual(UsoRepuesto.objects.get(pk=self.uso_id).cantidad, 4)

    def test_aumento_con_repuesto_inactivo(self):
        RepuestoService.set_activo(self.repuesto.id, False)
        with self.assertRaises(BusinessRuleError):
            UsoRepuestoService.update(self.uso_id, cantidad=6)

        UsoRepuestoService.update(self.uso_id, cantidad=2)
        self.repuesto.refresh_from_db()
        self.assertEqual(self.repuesto.stock_actual, 8)

    def test_actualizar_precio_recalcula(self):
        UsoRepuestoService.update(self.uso_id, precio_unitario="10.00")
        self.orden.refresh_from_db()
        self.assertEqual(self.orden.total_repuestos, Decimal("40.00"))

    def test_eliminar_devuelve_stock(self):
        UsoRepuestoService.delete(self.uso_id, usuario=self.admin)
        self.repuesto.refresh_from_db()
        self.orden.refresh_from_db()

        self.assertEqual(self.repuesto.stock_actual, 10)
        self.assertEqual(self.orden.total_repuestos, Decimal("0"))
        ultimo = RepuestoMovimiento.objects.filter(repuesto=self.repuesto).first()
        self.assertEqual(ultimo.tipo_movimiento, Tipo.DEVOLUCION)
        self.assertEqual(ultimo.usuario_movimiento, self.admin)

    def test_incrementar_en_orden_reutiliza_linea(self):
        UsoRepuestoService.increment_en_orden(self.orden.id, self.repuesto.id, 2)
        self.repuesto.refresh_from_db()

        self.assertEqual(UsoRepuesto.objects.filter(orden=self.orden).count(), 1)
        self.assertEqual(UsoRepuesto.objects.get(pk=self.uso_id).cantidad, 6)
        self.assertEqual(self.repuesto.stock_actual, 4)

    def test_incrementar_en_orden_crea_linea_nueva(self):
        bujia = self.crear_repuesto(codigo="BUJ001", nombre="Bujía", stock=5, precio="8.00")
        UsoRepuestoService.increment_en_orden(self.orden.id, bujia.id, 1)
        self.assertEqual(UsoRepuesto.objects.filter(orden=self.orden).count(), 2)

    def test_clonar_consume_stock(self):
        destino = self.crear_orden()
        result = UsoRepuestoService.clone_to_orden(self.orden.id, destino.id)
        self.repuesto.refresh_from_db()
        destino.refresh_from_db()

        self.assertEqual(result["cloned_count"], 1)
        self.assertEqual(self.repuesto.stock_actual, 2)
        self.assertEqual(destino.total_repuestos, Decimal("50.00"))

    def test_clonar_sin_stock_es_atomico(self):
        destino = self.crear_orden()
        UsoRepuestoService.create(destino.id, self.repuesto.id, 4)

        with self.assertRaises(InsufficientStockError):
            UsoRepuestoService.clone_to_orden(self.orden.id, destino.id)
        self.assertEqual(UsoRepuesto.objects.filter(orden=destino).count(), 1)

    def test_vaciar_orden(self):
        otro = self.crear_repuesto(codigo="CAD001", nombre="Cadena", stock=3, precio="60.00")
        UsoRepuestoService.create(self.orden.id, otro.id, 1)

        result = UsoRepuestoService.clear_orden(self.orden.id)
        self.repuesto.refresh_from_db()
        otro.refresh_from_db()

        self.assertEqual(result["deleted_count"], 2)
        self.assertEqual((self.repuesto.stock_actual, otro.stock_actual), (10, 3))
        self.assertEqual(Decimal(result["total_orden"]), Decimal("0"))

    def test_hard_delete_orden_con_usos(self):
        with self.assertRaises(BusinessRuleError):
            OrdenTrabajoService.hard_delete(self.orden.id)

    def test_consultas(self):
        self.assertEqual(UsoRepuestoService.total_por_orden(self.orden.id), Decimal("50.00"))
        self.assertEqual(UsoRepuestoService.cantidad_total_por_repuesto(self.repuesto.id), 4)

        detalle = OrdenTrabajoService.get(self.orden.id)["orden"]
        self.assertEqual(len(detalle["usos_repuesto"]), 1)

    def test_verificar_stock(self):
        result = UsoRepuestoService.verificar_stock(self.repuesto.id, 6)
        self.assertTrue(result["disponible"])
        result = UsoRepuestoService.verificar_stock(self.repuesto.id, 7)
        self.assertFalse(result["disponible"])


class UsoRepuestoInterleavingTests(BaseInventarioTestCase):
    """A competing write lands while the call under test waits on the orden lock."""

    def setUp(self):
        super().setUp()
        self.uso_id = UsoRepuestoService.create(self.orden.id, self.repuesto.id, 4)["uso"]["id"]

    def before_orden_lock(self, competing):
        lock = OrdenTrabajoService.lock
        pendientes = [competing]

        def lock_after_competing(orden_id):
            if pendientes:
                pendientes.pop()()
            return lock(orden_id)

        return mock.patch.object(OrdenTrabajoService, "lock", side_effect=lock_after_competing)

    def assert_stock_matches_usos(self):
        self.repuesto.refresh_from_db()
        usado = UsoRepuestoService.cantidad_total_por_repuesto(self.repuesto.id)
        self.assertEqual(self.repuesto.stock_actual, 10 - usado)
        ultimo = RepuestoMovimientoService.last(self.repuesto.id)
        self.assertEqual(ultimo.stock_nuevo, self.repuesto.stock_actual)

    def test_update_usa_cantidad_vigente(self):
        with self.before_orden_lock(lambda: UsoRepuestoService.update(self.uso_id, cantidad=5)):
            UsoRepuestoService.update(self.uso_id, cantidad=6)

        self.assertEqual(UsoRepuesto.objects.get(pk=self.uso_id).cantidad, 6)
        self.assert_stock_matches_usos()
        self.assertEqual(self.repuesto.stock_actual, 4)

    def test_delete_de_uso_ya_eliminado(self):
        with self.before_orden_lock(lambda: UsoRepuestoService.delete(self.uso_id)):
            with self.assertRaises(NotFoundError):
                UsoRepuestoService.delete(self.uso_id)

        self.assert_stock_matches_usos()

    def test_incrementar_sobre_cantidad_vigente(self):
        with self.before_orden_lock(lambda: UsoRepuestoService.update(self.uso_id, cantidad=5)):
            UsoRepuestoService.increment_en_orden(self.orden.id, self.repuesto.id, 1)

        self.assertEqual(UsoRepuesto.objects.get(pk=self.uso_id).cantidad, 6)
        self.assert_stock_matches_usos()

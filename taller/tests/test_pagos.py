from decimal import Decimal

from taller.models import OrdenTrabajo, Pago
from taller.services import (
    PagoService, OrdenTrabajoService, DetalleOrdenService,
    ValidationError, BusinessRuleError,
)
from taller.tests.base import BaseTallerTestCase, BaseApiTestCase

EstadoPago = OrdenTrabajo.EstadoPago


class PagoServiceTests(BaseTallerTestCase):
    def setUp(self):
        super().setUp()
        self.orden = self.crear_orden()
        DetalleOrdenService.add_servicio(self.orden.id, self.servicio.id)

    def test_pago_parcial(self):
        result = PagoService.create(self.orden.id, "20.00", Pago.Metodo.EFECTIVO)
        self.orden.refresh_from_db()

        self.assertEqual(self.orden.estado_pago, EstadoPago.PARCIAL)
        self.assertEqual(Decimal(result["saldo"]), Decimal("25.00"))

    def test_pago_completo(self):
        PagoService.create(self.orden.id, "20.00", Pago.Metodo.EFECTIVO)
        PagoService.create(self.orden.id, "25.00", Pago.Metodo.YAPE, referencia="OP-7781")
        self.orden.refresh_from_db()

        self.assertEqual(self.orden.estado_pago, EstadoPago.PAGADO)

    def test_pago_excede_saldo(self):
        PagoService.create(self.orden.id, "40.00", Pago.Metodo.TARJETA)
        with self.assertRaises(BusinessRuleError):
            PagoService.create(self.orden.id, "10.00", Pago.Metodo.TARJETA)
        self.assertEqual(self.orden.pagos.count(), 1)

    def test_orden_sin_total_no_acepta_pagos(self):
        vacia = self.crear_orden()
        with self.assertRaises(BusinessRuleError):
            PagoService.create(vacia.id, "1.00", Pago.Metodo.EFECTIVO)

    def test_monto_invalido(self):
        with self.assertRaises(ValidationError):
            PagoService.create(self.orden.id, "0", Pago.Metodo.EFECTIVO)
        with self.assertRaises(ValidationError):
            PagoService.create(self.orden.id, "abc", Pago.Metodo.EFECTIVO)

    def test_metodo_invalido(self):
        with self.assertRaises(ValidationError):
            PagoService.create(self.orden.id, "10.00", "CHEQUE")

    def test_orden_cancelada(self):
        OrdenTrabajoService.soft_delete(self.orden.id)
        with self.assertRaises(BusinessRuleError):
            PagoService.create(self.orden.id, "10.00", Pago.Metodo.EFECTIVO)

    def test_eliminar_pago_recalcula(self):
        result = PagoService.create(self.orden.id, "45.00", Pago.Metodo.EFECTIVO)
        PagoService.delete(result["pago"]["id"])
        self.orden.refresh_from_db()

        self.assertEqual(self.orden.estado_pago, EstadoPago.PENDIENTE)

    def test_actualizar_monto_respeta_saldo(self):
        result = PagoService.create(self.orden.id, "10.00", Pago.Metodo.EFECTIVO)
        PagoService.update(result["pago"]["id"], monto="45.00")
        self.orden.refresh_from_db()
        self.assertEqual(self.orden.estado_pago, EstadoPago.PAGADO)

        with self.assertRaises(BusinessRuleError):
            PagoService.update(result["pago"]["id"], monto="46.00")

    def test_hard_delete_orden_con_pagos(self):
        PagoService.create(self.orden.id, "10.00", Pago.Metodo.EFECTIVO)
        with self.assertRaises(BusinessRuleError):
            OrdenTrabajoService.hard_delete(self.orden.id)

    def test_resumen_orden(self):
        PagoService.create(self.orden.id, "15.00", Pago.Metodo.EFECTIVO)
        result = PagoService.resumen_orden(self.orden.id)

        self.assertEqual(Decimal(result["total_pagado"]), Decimal("15.00"))
        self.assertEqual(Decimal(result["saldo"]), Decimal("30.00"))
        self.assertEqual(result["cantidad_pagos"], 1)
        self.assertEqual(PagoService.saldo(self.orden.id), Decimal("30.00"))
        self.assertEqual(PagoService.total_pagado(self.orden.id), Decimal("15.00"))

    def test_resumen_por_metodo(self):
        PagoService.create(self.orden.id, "15.00", Pago.Metodo.EFECTIVO)
        PagoService.create(self.orden.id, "5.00", Pago.Metodo.EFECTIVO)
        PagoService.create(self.orden.id, "10.00", Pago.Metodo.PLIN)

        result = PagoService.resumen_por_metodo()
        por_metodo = {i["metodo"]: i for i in result["items"]}

        self.assertEqual(por_metodo["EFECTIVO"]["cantidad"], 2)
        self.assertEqual(Decimal(por_metodo["EFECTIVO"]["total"]), Decimal("20.00"))
        self.assertEqual(Decimal(result["total"]), Decimal("30.00"))


class PagoApiTests(BaseApiTestCase):
    def test_registrar_pago(self):
        orden = self.crear_orden()
        DetalleOrdenService.add_servicio(orden.id, self.servicio.id)

        response = self.api(
            "post", "/api/pagos/",
            {"orden_id": orden.id, "monto": "45.00", "metodo": "EFECTIVO"},
            usuario=self.recepcionista,
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["estado_pago"], EstadoPago.PAGADO)

    def test_pago_excedido_400(self):
        orden = self.crear_orden()
        response = self.api(
            "post", "/api/pagos/",
            {"orden_id": orden.id, "monto": "10.00", "metodo": "EFECTIVO"},
            usuario=self.admin,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["rule"], "monto_exceeds_saldo")

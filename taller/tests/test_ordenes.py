from decimal import Decimal
from unittest import mock

from django.utils import timezone

from taller.models import OrdenTrabajo, OrdenHistorial, Servicio
from taller.services import (
    OrdenTrabajoService, OrdenHistorialService, DetalleOrdenService,
    ValidationError, BusinessRuleError, NotFoundError,
)
from taller.tests.base import BaseTallerTestCase, BaseApiTestCase

Estado = OrdenTrabajo.Estado


class OrdenTrabajoServiceTests(BaseTallerTestCase):
    def test_numero_generado_y_secuencial(self):
        hoy = timezone.localtime().strftime("%Y%m%d")
        primera = self.crear_orden()
        segunda = self.crear_orden()

        self.assertEqual(primera.numero_orden, f"OT-{hoy}-0001")
        self.assertEqual(segunda.numero_orden, f"OT-{hoy}-0002")

    def test_numero_manual_duplicado(self):
        self.crear_orden(numero_orden="OT-MANUAL-1")
        with self.assertRaises(ValidationError):
            self.crear_orden(numero_orden="OT-MANUAL-1")

    def test_creacion_registra_historial(self):
        orden = self.crear_orden()
        historial = list(orden.historial.all())

        self.assertEqual(len(historial), 1)
        self.assertIsNone(historial[0].estado_anterior)
        self.assertEqual(historial[0].estado_nuevo, Estado.RECIBIDA)
        self.assertEqual(historial[0].usuario_cambio, self.recepcionista)

    def test_valores_por_defecto(self):
        orden = self.crear_orden()
        self.assertEqual(orden.estado, Estado.RECIBIDA)
        self.assertEqual(orden.prioridad, OrdenTrabajo.Prioridad.NORMAL)
        self.assertEqual(orden.estado_pago, OrdenTrabajo.EstadoPago.PENDIENTE)
        self.assertEqual(orden.total_orden, Decimal("0"))

    def test_moto_inactiva_rechazada(self):
        self.moto.activo = False
        self.moto.save()
        with self.assertRaises(BusinessRuleError):
            self.crear_orden()

    def test_mecanico_debe_tener_rol_mecanico(self):
        with self.assertRaises(BusinessRuleError):
            self.crear_orden(mecanico_asignado_id=self.recepcionista.id)

    def test_cambio_de_estado_registra_historial(self):
        orden = self.crear_orden()
        OrdenTrabajoService.change_estado(orden.id, Estado.DIAGNOSTICADA, "Revisado", self.mecanico)
        OrdenTrabajoService.change_estado(orden.id, Estado.EN_PROCESO, "", self.mecanico)

        historial = list(OrdenHistorial.objects.filter(orden=orden))
        self.assertEqual(
            [(h.estado_anterior, h.estado_nuevo) for h in historial],
            [(None, Estado.RECIBIDA), (Estado.RECIBIDA, Estado.DIAGNOSTICADA),
             (Estado.DIAGNOSTICADA, Estado.EN_PROCESO)],
        )
        self.assertEqual(historial[1].comentario, "Revisado")
        self.assertEqual(historial[1].usuario_cambio, self.mecanico)

    def test_mismo_estado_rechazado(self):
        orden = self.crear_orden()
        with self.assertRaises(BusinessRuleError):
            OrdenTrabajoService.change_estado(orden.id, Estado.RECIBIDA)

    def test_estado_invalido(self):
        orden = self.crear_orden()
        with self.assertRaises(ValidationError):
            OrdenTrabajoService.change_estado(orden.id, "PERDIDA")

    def test_estado_final_bloquea_cambios(self):
        orden = self.crear_orden()
        OrdenTrabajoService.change_estado(orden.id, Estado.ENTREGADA)

        with self.assertRaises(BusinessRuleError):
            OrdenTrabajoService.change_estado(orden.id, Estado.EN_PROCESO)
        with self.assertRaises(BusinessRuleError):
            OrdenTrabajoService.update(orden.id, diagnostico="Tarde")
        with self.assertRaises(BusinessRuleError):
            DetalleOrdenService.add_servicio(orden.id, self.servicio.id)

    def test_soft_delete_cancela(self):
        orden = self.crear_orden()
        OrdenTrabajoService.soft_delete(orden.id, self.admin)
        orden.refresh_from_db()

        self.assertEqual(orden.estado, Estado.CANCELADA)
        self.assertEqual(orden.historial.last().estado_nuevo, Estado.CANCELADA)

    def test_hard_delete_sin_pagos(self):
        orden = self.crear_orden()
        OrdenTrabajoService.hard_delete(orden.id)
        self.assertFalse(OrdenTrabajo.objects.filter(pk=orden.id).exists())

    def test_asignar_y_desasignar_mecanico(self):
        orden = self.crear_orden()
        OrdenTrabajoService.assign_mecanico(orden.id, self.mecanico.id, self.admin)
        orden.refresh_from_db()
        self.assertEqual(orden.mecanico_asignado, self.mecanico)

        OrdenTrabajoService.assign_mecanico(orden.id, None, self.admin)
        orden.refresh_from_db()
        self.assertIsNone(orden.mecanico_asignado)
        self.assertEqual(orden.historial.count(), 3)

    def test_update_campos_validos(self):
        orden = self.crear_orden()
        result = OrdenTrabajoService.update(
            orden.id, diagnostico="Cadena floja", prioridad="ALTA",
            numero_orden="HACK", estado="ENTREGADA", moto_id=99999,
        )
        orden.refresh_from_db()

        self.assertEqual(sorted(result["updated_fields"]), ["diagnostico", "prioridad"])
        self.assertEqual(orden.diagnostico, "Cadena floja")
        self.assertEqual(orden.estado, Estado.RECIBIDA)
        self.assertEqual(orden.moto_id, self.moto.id)

    def test_update_conserva_totales_de_escritura_paralela(self):
        orden = self.crear_orden()
        ensure_editable = OrdenTrabajoService.ensure_editable
        pendientes = [lambda: DetalleOrdenService.add_servicio(orden.id, self.servicio.id)]

        def ensure_editable_con_detalle(o):
            if pendientes:
                pendientes.pop()()
            return ensure_editable(o)

        with mock.patch.object(OrdenTrabajoService, "ensure_editable", side_effect=ensure_editable_con_detalle):
            OrdenTrabajoService.update(orden.id, diagnostico="Bujía gastada")

        orden.refresh_from_db()
        self.assertEqual(orden.diagnostico, "Bujía gastada")
        self.assertEqual(orden.total_orden, Decimal("45.00"))

    def test_filtro_por_estados_multiples(self):
        a = self.crear_orden()
        self.crear_orden()
        OrdenTrabajoService.change_estado(a.id, Estado.EN_PROCESO)

        result = OrdenTrabajoService.list(estado="EN_PROCESO,COMPLETADA")
        self.assertEqual([o["id"] for o in result["items"]], [a.id])

    def test_filtro_por_cliente(self):
        self.crear_orden()
        result = OrdenTrabajoService.list(cliente_id=self.cliente.id)
        self.assertEqual(result["pagination"]["total_items"], 1)

    def test_get_por_numero(self):
        orden = self.crear_orden()
        result = OrdenTrabajoService.get_by_numero(orden.numero_orden)
        self.assertEqual(result["orden"]["id"], orden.id)
        self.assertEqual(Decimal(result["orden"]["saldo"]), Decimal("0"))

        with self.assertRaises(NotFoundError):
            OrdenTrabajoService.get_by_numero("OT-NO-EXISTE")

    def test_historial_list_filtra_por_usuario(self):
        orden = self.crear_orden()
        OrdenTrabajoService.change_estado(orden.id, Estado.DIAGNOSTICADA, usuario=self.mecanico)
        result = OrdenHistorialService.list(usuario_id=self.mecanico.id)
        self.assertEqual(result["pagination"]["total_items"], 1)


class DetalleOrdenServiceTests(BaseTallerTestCase):
    def setUp(self):
        super().setUp()
        self.orden = self.crear_orden()
        self.frenos = Servicio.objects.create(
            codigo="REP001", nombre="Cambio de pastillas", categoria="FRENOS",
            precio_base=Decimal("30.00"),
        )

    def test_agregar_servicio_usa_precio_base_y_recalcula(self):
        DetalleOrdenService.add_servicio(self.orden.id, self.servicio.id)
        DetalleOrdenService.add_servicio(self.orden.id, self.frenos.id, precio_aplicado="25.50")
        self.orden.refresh_from_db()

        self.assertEqual(self.orden.total_servicios, Decimal("70.50"))
        self.assertEqual(self.orden.total_orden, Decimal("70.50"))

    def test_servicio_duplicado_rechazado(self):
        DetalleOrdenService.add_servicio(self.orden.id, self.servicio.id)
        with self.assertRaises(ValidationError):
            DetalleOrdenService.add_servicio(self.orden.id, self.servicio.id)

    def test_servicio_inactivo(self):
        self.frenos.activo = False
        self.frenos.save()
        with self.assertRaises(BusinessRuleError):
            DetalleOrdenService.add_servicio(self.orden.id, self.frenos.id)

    def test_update_y_remove_recalculan(self):
        result = DetalleOrdenService.add_servicio(self.orden.id, self.servicio.id)
        detalle_id = result["detalle"]["id"]

        DetalleOrdenService.update(detalle_id, precio_aplicado="50")
        self.orden.refresh_from_db()
        self.assertEqual(self.orden.total_orden, Decimal("50.00"))

        DetalleOrdenService.remove(detalle_id)
        self.orden.refresh_from_db()
        self.assertEqual(self.orden.total_orden, Decimal("0.00"))

    def test_clonar_omite_existentes(self):
        DetalleOrdenService.add_servicio(self.orden.id, self.servicio.id)
        DetalleOrdenService.add_servicio(self.orden.id, self.frenos.id)
        destino = self.crear_orden()
        DetalleOrdenService.add_servicio(destino.id, self.servicio.id)

        result = DetalleOrdenService.clone_to_orden(self.orden.id, destino.id)
        self.assertEqual(result["cloned_count"], 1)
        self.assertEqual(destino.detalles.count(), 2)

    def test_clonar_misma_orden(self):
        with self.assertRaises(ValidationError):
            DetalleOrdenService.clone_to_orden(self.orden.id, self.orden.id)


class OrdenApiTests(BaseApiTestCase):
    def test_crear_orden_asigna_creador(self):
        response = self.api(
            "post", "/api/ordenes/",
            {"moto_id": self.moto.id, "descripcion_problema": "No arranca", "prioridad": "URGENTE"},
            usuario=self.recepcionista,
        )
        self.assertEqual(response.status_code, 201)
        orden = OrdenTrabajo.objects.get(pk=response.json()["orden"]["id"])
        self.assertEqual(orden.usuario_creador, self.recepcionista)
        self.assertEqual(orden.prioridad, OrdenTrabajo.Prioridad.URGENTE)

    def test_cambiar_estado_endpoint(self):
        orden = self.crear_orden()
        response = self.api(
            "patch", f"/api/ordenes/{orden.id}/estado/",
            {"estado": "DIAGNOSTICADA", "comentario": "Bujía dañada"},
            usuario=self.mecanico,
        )
        self.assertEqual(response.status_code, 200)
        ultimo = orden.historial.last()
        self.assertEqual(ultimo.usuario_cambio_id, self.mecanico.id)

    def test_estado_final_400(self):
        orden = self.crear_orden()
        OrdenTrabajoService.change_estado(orden.id, Estado.CANCELADA)
        response = self.api(
            "patch", f"/api/ordenes/{orden.id}/estado/", {"estado": "EN_PROCESO"}, usuario=self.admin
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "business_rule")
        self.assertEqual(response.json()["error"]["details"]["rule"], "orden_final")

    def test_delete_cancela(self):
        orden = self.crear_orden()
        response = self.api("delete", f"/api/ordenes/{orden.id}/", usuario=self.admin)
        self.assertEqual(response.status_code, 200)
        orden.refresh_from_db()
        self.assertEqual(orden.estado, Estado.CANCELADA)

    def test_agregar_servicio_endpoint(self):
        orden = self.crear_orden()
        response = self.api(
            "post", f"/api/ordenes/{orden.id}/servicios/", {"servicio_id": self.servicio.id},
            usuario=self.mecanico,
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["total_orden"], "45.00")

    def test_historial_endpoint(self):
        orden = self.crear_orden()
        response = self.api("get", f"/api/ordenes/{orden.id}/historial/", usuario=self.mecanico)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["items"]), 1)

    def test_stats(self):
        self.crear_orden()
        response = self.api("get", "/api/ordenes/stats/", usuario=self.admin)
        self.assertEqual(response.json()["por_estado"][Estado.RECIBIDA], 1)
        self.assertEqual(response.json()["sin_mecanico"], 1)

    def test_put_con_id_en_el_cuerpo(self):
        orden = self.crear_orden()
        response = self.api(
            "put", f"/api/ordenes/{orden.id}/",
            {"orden_id": orden.id, "observaciones": "Cliente espera en taller"},
            usuario=self.recepcionista,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["updated_fields"], ["observaciones"])

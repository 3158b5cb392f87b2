from decimal import Decimal

from taller.models import Cliente, Moto, Servicio
from taller.services import (
    ClienteService, MotoService, ServicioService,
    ValidationError, BusinessRuleError, NotFoundError,
)
from taller.tests.base import BaseTallerTestCase, BaseApiTestCase


class ClienteServiceTests(BaseTallerTestCase):
    def test_dni_duplicado(self):
        with self.assertRaises(ValidationError) as ctx:
            ClienteService.create(nombre="Otro", telefono="999111222", dni="45678912")
        self.assertEqual(ctx.exception.field, "dni")

    def test_dni_vacio_no_choca(self):
        ClienteService.create(nombre="Ana", telefono="911111111", dni="")
        ClienteService.create(nombre="Luis", telefono="922222222", dni="  ")
        self.assertEqual(Cliente.objects.filter(dni__isnull=True).count(), 2)

    def test_email_invalido(self):
        with self.assertRaises(ValidationError):
            ClienteService.create(nombre="Ana", telefono="911111111", email="no-es-email")

    def test_soft_delete_desactiva(self):
        ClienteService.soft_delete(self.cliente.id)
        self.cliente.refresh_from_db()
        self.assertFalse(self.cliente.activo)

    def test_hard_delete_con_motos_rechazado(self):
        with self.assertRaises(BusinessRuleError):
            ClienteService.hard_delete(self.cliente.id)

    def test_update_contacto(self):
        result = ClienteService.update_contact(self.cliente.id, telefono="900000000")
        self.assertEqual(result["cliente"]["telefono"], "900000000")

    def test_get_inexistente(self):
        with self.assertRaises(NotFoundError):
            ClienteService.get(99999)


class MotoServiceTests(BaseTallerTestCase):
    def test_placa_normalizada_y_unica(self):
        result = MotoService.create(self.cliente.id, "Yamaha", "FZ25", "xyz-987")
        self.assertEqual(result["moto"]["placa"], "XYZ-987")

        with self.assertRaises(ValidationError):
            MotoService.create(self.cliente.id, "Bajaj", "Pulsar", "XYZ-987")

    def test_cliente_inactivo_rechazado(self):
        self.cliente.activo = False
        self.cliente.save()
        with self.assertRaises(BusinessRuleError):
            MotoService.create(self.cliente.id, "Yamaha", "FZ25", "NEW-001")

    def test_kilometraje_no_disminuye(self):
        MotoService.update_kilometraje(self.moto.id, 12000)
        with self.assertRaises(BusinessRuleError):
            MotoService.update_kilometraje(self.moto.id, 11000)
        self.moto.refresh_from_db()
        self.assertEqual(self.moto.kilometraje, 12000)

    def test_anio_fuera_de_rango(self):
        with self.assertRaises(ValidationError):
            MotoService.create(self.cliente.id, "Honda", "Viejita", "OLD-001", anio=1850)

    def test_transferir_cliente(self):
        nuevo = Cliente.objects.create(nombre="Rosa", telefono="955555555")
        MotoService.transfer_cliente(self.moto.id, nuevo.id)
        self.moto.refresh_from_db()
        self.assertEqual(self.moto.cliente_id, nuevo.id)

    def test_update_reasigna_cliente_y_lo_informa(self):
        nuevo = Cliente.objects.create(nombre="Rosa", telefono="955555555")
        result = MotoService.update(self.moto.id, cliente_id=nuevo.id, color="Rojo", activo="true")
        self.moto.refresh_from_db()

        self.assertEqual(sorted(result["updated_fields"]), ["activo", "cliente_id", "color"])
        self.assertEqual(self.moto.cliente_id, nuevo.id)
        self.assertEqual(self.moto.color, "Rojo")

    def test_hard_delete_con_ordenes_rechazado(self):
        self.crear_orden()
        with self.assertRaises(BusinessRuleError):
            MotoService.hard_delete(self.moto.id)


class ServicioServiceTests(BaseTallerTestCase):
    def setUp(self):
        super().setUp()
        Servicio.objects.create(
            codigo="MAN002", nombre="Afinamiento", categoria="MANTENIMIENTO",
            precio_base=Decimal("80.00"),
        )
        Servicio.objects.create(
            codigo="ELE001", nombre="Revisión eléctrica", categoria="ELECTRICO",
            precio_base=Decimal("60.00"),
        )

    def test_ajuste_porcentual_por_categoria(self):
        result = ServicioService.update_precios_por_categoria("MANTENIMIENTO", "10")
        self.assertEqual(result["updated_count"], 2)

        self.servicio.refresh_from_db()
        self.assertEqual(self.servicio.precio_base, Decimal("49.50"))
        self.assertEqual(Servicio.objects.get(codigo="MAN002").precio_base, Decimal("88.00"))
        self.assertEqual(Servicio.objects.get(codigo="ELE001").precio_base, Decimal("60.00"))

    def test_ajuste_ignora_inactivos(self):
        Servicio.objects.filter(codigo="MAN002").update(activo=False)
        ServicioService.update_precios_por_categoria("MANTENIMIENTO", "-20")
        self.assertEqual(Servicio.objects.get(codigo="MAN002").precio_base, Decimal("80.00"))
        self.assertEqual(Servicio.objects.get(codigo="MAN001").precio_base, Decimal("36.00"))

    def test_categoria_sin_servicios(self):
        with self.assertRaises(NotFoundError):
            ServicioService.update_precios_por_categoria("FRENOS", "5")

    def test_codigo_duplicado(self):
        with self.assertRaises(ValidationError):
            ServicioService.create("man001", "Duplicado", "MANTENIMIENTO", "10")

    def test_precio_negativo(self):
        with self.assertRaises(ValidationError):
            ServicioService.create("NEW001", "Nuevo", "OTROS", "-1")

    def test_servicios_basicos(self):
        result = ServicioService.servicios_basicos()
        self.assertEqual([s["codigo"] for s in result["items"]], ["ELE001", "MAN001", "MAN002"])


class CatalogoApiTests(BaseApiTestCase):
    def test_crear_cliente(self):
        response = self.api(
            "post", "/api/clientes/", {"nombre": "Pedro", "telefono": "944444444"}, usuario=self.recepcionista
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["cliente"]["nombre"], "Pedro")

    def test_crear_cliente_sin_telefono(self):
        response = self.api("post", "/api/clientes/", {"nombre": "Pedro"}, usuario=self.recepcionista)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "validation_error")
        self.assertEqual(response.json()["error"]["details"]["field"], "telefono")

    def test_moto_inexistente_404(self):
        response = self.api("get", "/api/motos/99999/", usuario=self.mecanico)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "not_found")

    def test_buscar_moto_por_placa(self):
        response = self.api("get", "/api/motos/", {"placa": "ABC-123"}, usuario=self.mecanico)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["moto"]["id"], self.moto.id)

    def test_delete_cliente_es_soft(self):
        response = self.api("delete", f"/api/clientes/{self.cliente.id}/", usuario=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(Cliente.objects.filter(pk=self.cliente.id, activo=False).exists())

    def test_json_invalido(self):
        response = self.client.post(
            "/api/clientes/", data="{no json", content_type="application/json", **self.auth(self.admin)
        )
        self.assertEqual(response.status_code, 400)

    def test_ruta_api_inexistente_devuelve_json(self):
        response = self.client.get("/api/no-existe/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "not_found")

    def test_metodo_no_permitido_devuelve_json(self):
        response = self.api("delete", "/api/motos/marcas/", usuario=self.admin)
        self.assertEqual(response.status_code, 405)
        self.assertFalse(response.json()["success"])
        self.assertTrue(Moto.objects.exists())

    def test_put_cliente_con_id_en_el_cuerpo(self):
        response = self.api(
            "put", f"/api/clientes/{self.cliente.id}/",
            {"cliente_id": self.cliente.id, "direccion": "Av. Grau 120"},
            usuario=self.recepcionista,
        )
        self.assertEqual(response.status_code, 200)
        self.cliente.refresh_from_db()
        self.assertEqual(self.cliente.direccion, "Av. Grau 120")

    def test_activo_como_texto(self):
        url = f"/api/clientes/{self.cliente.id}/activo/"
        response = self.api("patch", url, {"activo": "false"}, usuario=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["activo"])
        self.cliente.refresh_from_db()
        self.assertFalse(self.cliente.activo)

        response = self.api("patch", f"/api/servicios/{self.servicio.id}/activo/", {"activo": "si"}, usuario=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["activo"])

        response = self.api("patch", url, {"activo": "quizas"}, usuario=self.admin)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "validation_error")

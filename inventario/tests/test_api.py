from inventario.models import RepuestoMovimiento, UsoRepuesto
from inventario.tests.base import BaseInventarioApiTestCase


class UsoApiTests(BaseInventarioApiTestCase):
    def test_registrar_uso(self):
        response = self.api(
            "post", "/api/inventario/usos/",
            {"orden_id": self.orden.id, "repuesto_id": self.repuesto.id, "cantidad": 2},
            usuario=self.mecanico,
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["stock_actual"], 8)
        self.assertEqual(body["total_orden"], "25.00")

        movimiento = RepuestoMovimiento.objects.get(repuesto=self.repuesto)
        self.assertEqual(movimiento.usuario_movimiento, self.mecanico)

    def test_stock_insuficiente(self):
        response = self.api(
            "post", "/api/inventario/usos/",
            {"orden_id": self.orden.id, "repuesto_id": self.repuesto.id, "cantidad": 50},
            usuario=self.mecanico,
        )
        self.assertEqual(response.status_code, 400)
        error = response.json()["error"]
        self.assertEqual(error["code"], "insufficient_stock")
        self.assertEqual(error["message"], "Stock insuficiente. Disponible: 10, Solicitado: 50")
        self.assertEqual(error["details"]["required"], 50)
        self.assertFalse(UsoRepuesto.objects.exists())

    def test_campos_requeridos(self):
        response = self.api(
            "post", "/api/inventario/usos/", {"orden_id": self.orden.id}, usuario=self.mecanico
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "validation_error")

    def test_sin_token(self):
        response = self.api("get", "/api/inventario/usos/")
        self.assertEqual(response.status_code, 401)

    def test_eliminar_uso_devuelve_stock(self):
        uso = self.api(
            "post", "/api/inventario/usos/",
            {"orden_id": self.orden.id, "repuesto_id": self.repuesto.id, "cantidad": 4},
            usuario=self.mecanico,
        ).json()["uso"]

        response = self.api("delete", f"/api/inventario/usos/{uso['id']}/", usuario=self.mecanico)
        self.assertEqual(response.status_code, 200)
        self.repuesto.refresh_from_db()
        self.assertEqual(self.repuesto.stock_actual, 10)

    def test_orden_usos_acumula(self):
        url = f"/api/inventario/ordenes/{self.orden.id}/usos/"
        self.api("post", url, {"repuesto_id": self.repuesto.id, "cantidad": 1}, usuario=self.mecanico)
        self.api("post", url, {"repuesto_id": self.repuesto.id, "cantidad": 2}, usuario=self.mecanico)

        response = self.api("get", url, usuario=self.mecanico)
        items = response.json()["items"]
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["cantidad"], 3)

    def test_verificar_stock(self):
        response = self.api(
            "get", "/api/inventario/verificar-stock/",
            {"repuesto_id": self.repuesto.id, "cantidad": 12},
            usuario=self.mecanico,
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["disponible"])


class RepuestoApiTests(BaseInventarioApiTestCase):
    def test_crear_repuesto(self):
        response = self.api(
            "post", "/api/inventario/repuestos/",
            {"codigo": "ACE001", "nombre": "Aceite 20W50", "precio_unitario": "28.00", "stock_actual": 24},
            usuario=self.admin,
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["repuesto"]["stock_actual"], 24)

    def test_ajustar_stock(self):
        url = f"/api/inventario/repuestos/{self.repuesto.id}/stock/"
        response = self.api("post", url, {"accion": "incrementar", "cantidad": 5}, usuario=self.admin)
        self.assertEqual(response.json()["stock_actual"], 15)

        response = self.api("post", url, {"accion": "ajustar", "cantidad": 3}, usuario=self.admin)
        self.assertEqual(response.json()["stock_actual"], 3)

        response = self.api("post", url, {"accion": "regalar", "cantidad": 1}, usuario=self.admin)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["field"], "accion")

    def test_put_stock_actual_rechazado(self):
        response = self.api(
            "put", f"/api/inventario/repuestos/{self.repuesto.id}/", {"stock_actual": 500}, usuario=self.admin
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["rule"], "stock_via_movimientos")

    def test_buscar_por_codigo(self):
        response = self.api("get", "/api/inventario/repuestos/", {"codigo": "fil001"}, usuario=self.mecanico)
        self.assertEqual(response.json()["repuesto"]["id"], self.repuesto.id)

    def test_movimientos_del_repuesto(self):
        self.api(
            "post", "/api/inventario/movimientos/",
            {"repuesto_id": self.repuesto.id, "tipo_movimiento": "MERMA", "cantidad": 1},
            usuario=self.admin,
        )
        response = self.api("get", f"/api/inventario/repuestos/{self.repuesto.id}/movimientos/", usuario=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["items"]), 1)
        self.assertEqual(response.json()["stock_actual"], 9)

    def test_movimientos_limite_negativo(self):
        for _ in range(2):
            self.api(
                "post", "/api/inventario/movimientos/",
                {"repuesto_id": self.repuesto.id, "tipo_movimiento": "ENTRADA", "cantidad": 1},
                usuario=self.admin,
            )
        response = self.api(
            "get", f"/api/inventario/repuestos/{self.repuesto.id}/movimientos/", {"limit": -1}, usuario=self.admin
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["items"]), 1)

    def test_desactivar_con_texto(self):
        url = f"/api/inventario/repuestos/{self.repuesto.id}/activo/"
        response = self.api("patch", url, {"activo": "false"}, usuario=self.admin)
        self.assertEqual(response.status_code, 200)
        self.repuesto.refresh_from_db()
        self.assertFalse(self.repuesto.activo)

        response = self.api("patch", url, {"activo": "quizas"}, usuario=self.admin)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["field"], "activo")

    def test_put_con_id_en_el_cuerpo(self):
        response = self.api(
            "put", f"/api/inventario/repuestos/{self.repuesto.id}/",
            {"repuesto_id": self.repuesto.id, "id": self.repuesto.id, "nombre": "Filtro K&N"},
            usuario=self.admin,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["updated_fields"], ["nombre"])

from datetime import datetime, timedelta, timezone as dt_timezone

import jwt
from django.conf import settings

from taller.models import Usuario
from taller.services import AuthService, AuthenticationError, UsuarioService, ValidationError, BusinessRuleError
from taller.tests.base import BaseTallerTestCase, BaseApiTestCase


class AuthServiceTests(BaseTallerTestCase):
    def test_login_devuelve_token_con_claims(self):
        result = AuthService.login("admin", "secreto123")

        self.assertEqual(result["type"], "Bearer")
        payload = jwt.decode(result["token"], settings.JWT_SECRET_KEY, algorithms=["HS256"])
        self.assertEqual(payload["sub"], "admin")
        self.assertEqual(payload["rol"], Usuario.Rol.ADMIN)
        self.assertEqual(payload["idUsuario"], self.admin.id)

        self.admin.refresh_from_db()
        self.assertIsNotNone(self.admin.ultimo_login)

    def test_login_por_email(self):
        result = AuthService.login("ADMIN@taller.pe", "secreto123")
        self.assertEqual(result["usuario"]["username"], "admin")

    def test_login_password_incorrecto(self):
        with self.assertRaises(AuthenticationError):
            AuthService.login("admin", "otra-clave")

    def test_login_usuario_inactivo(self):
        self.crear_usuario("inactivo", Usuario.Rol.MECANICO, activo=False)
        with self.assertRaises(AuthenticationError):
            AuthService.login("inactivo", "secreto123")

    def test_token_expirado(self):
        pasado = datetime.now(dt_timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "admin", "iat": pasado, "exp": pasado + timedelta(minutes=1)},
            settings.JWT_SECRET_KEY,
            algorithm="HS256",
        )
        with self.assertRaises(AuthenticationError) as ctx:
            AuthService.validate(token)
        self.assertEqual(ctx.exception.message, "Token expirado")

    def test_password_no_se_guarda_en_claro(self):
        self.assertNotEqual(self.admin.password_hash, "secreto123")
        self.assertTrue(self.admin.check_password("secreto123"))


class UsuarioServiceTests(BaseTallerTestCase):
    def test_username_duplicado(self):
        with self.assertRaises(ValidationError) as ctx:
            UsuarioService.create("admin", "nuevo@taller.pe", "secreto123", "Otro", Usuario.Rol.ADMIN)
        self.assertEqual(ctx.exception.field, "username")

    def test_password_corto(self):
        with self.assertRaises(ValidationError):
            UsuarioService.create("nuevo", "nuevo@taller.pe", "123", "Nuevo", Usuario.Rol.MECANICO)

    def test_change_password_requiere_actual(self):
        with self.assertRaises(BusinessRuleError):
            UsuarioService.change_password(self.admin.id, "mala", "nuevaclave")

        UsuarioService.change_password(self.admin.id, "secreto123", "nuevaclave")
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.check_password("nuevaclave"))

    def test_list_mecanicos_solo_activos(self):
        self.crear_usuario("mecanico2", Usuario.Rol.MECANICO, activo=False)
        result = UsuarioService.list_mecanicos()
        self.assertEqual([m["username"] for m in result["items"]], ["mecanico1"])


class AuthApiTests(BaseApiTestCase):
    def test_login_endpoint(self):
        response = self.api("post", "/api/auth/login/", {"username": "admin", "password": "secreto123"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])
        self.assertIn("token", response.json())

    def test_login_fallido_401(self):
        response = self.api("post", "/api/auth/login/", {"username": "admin", "password": "x"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "authentication_failed")

    def test_endpoint_protegido_sin_token(self):
        response = self.api("get", "/api/clientes/")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()["success"])

    def test_token_invalido(self):
        response = self.client.get("/api/auth/me/", HTTP_AUTHORIZATION="Bearer no-es-un-jwt")
        self.assertEqual(response.status_code, 401)

    def test_me(self):
        response = self.api("get", "/api/auth/me/", usuario=self.mecanico)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["usuario"]["username"], "mecanico1")

    def test_validate(self):
        response = self.api("get", "/api/auth/validate/", usuario=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["valid"])

    def test_mecanico_no_gestiona_usuarios(self):
        response = self.api("get", "/api/usuarios/", usuario=self.mecanico)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"]["code"], "permission_denied")

    def test_mecanico_no_registra_pagos(self):
        response = self.api("get", "/api/pagos/", usuario=self.mecanico)
        self.assertEqual(response.status_code, 403)

    def test_recepcionista_lista_usuarios(self):
        response = self.api("get", "/api/usuarios/", usuario=self.recepcionista)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["pagination"]["total_items"], 3)

    def test_cambiar_password_de_otro_usuario_prohibido(self):
        response = self.api(
            "post", f"/api/usuarios/{self.admin.id}/password/",
            {"password_actual": "secreto123", "password_nuevo": "nuevaclave"},
            usuario=self.mecanico,
        )
        self.assertEqual(response.status_code, 403)

    def test_usuario_desactivado_pierde_acceso(self):
        headers = self.auth(self.mecanico)
        self.mecanico.activo = False
        self.mecanico.save()
        response = self.client.get("/api/auth/me/", **headers)
        self.assertEqual(response.status_code, 401)

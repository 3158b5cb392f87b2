import json
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase, Client

from taller.models import Usuario, Cliente, Moto, Servicio, OrdenTrabajo
from taller.services import AuthService, OrdenTrabajoService


class BaseTallerTestCase(TestCase):
    def setUp(self):
        cache.clear()

        # Usuarios
        self.admin = self.crear_usuario("admin", Usuario.Rol.ADMIN)
        self.recepcionista = self.crear_usuario("recepcion", Usuario.Rol.RECEPCIONISTA)
        self.mecanico = self.crear_usuario("mecanico1", Usuario.Rol.MECANICO)

        # Cliente y moto
        self.cliente = Cliente.objects.create(
            nombre="Carlos Quispe", telefono="987654321", dni="45678912"
        )
        self.moto = Moto.objects.create(
            cliente=self.cliente, marca="Honda", modelo="CB190R", placa="ABC-123", anio=2021
        )

        # Catálogo
        self.servicio = Servicio.objects.create(
            codigo="MAN001", nombre="Cambio de aceite", categoria="MANTENIMIENTO",
            precio_base=Decimal("45.00"),
        )

    def crear_usuario(self, username, rol, password="secreto123", activo=True):
        usuario = Usuario(
            username=username,
            email=f"{username}@taller.pe",
            nombre_completo=username.title(),
            rol=rol,
            activo=activo,
        )
        usuario.set_password(password)
        usuario.save()
        return usuario

    def crear_orden(self, **kwargs) -> OrdenTrabajo:
        params = {
            "moto_id": self.moto.id,
            "descripcion_problema": "Ruido en el motor",
            "usuario_creador": self.recepcionista,
        }
        params.update(kwargs)
        result = OrdenTrabajoService.create(**params)
        return OrdenTrabajo.objects.get(pk=result["orden"]["id"])


class BaseApiTestCase(BaseTallerTestCase):
    def setUp(self):
        super().setUp()
        self.client = Client()

    def auth(self, usuario):
        return {"HTTP_AUTHORIZATION": f"Bearer {AuthService.generate_token(usuario)}"}

    def api(self, method, url, data=None, usuario=None, **extra):
        headers = self.auth(usuario) if usuario else {}
        headers.update(extra)
        call = getattr(self.client, method)
        if method in ("post", "put", "patch"):
            return call(url, data=json.dumps(data or {}), content_type="application/json", **headers)
        return call(url, data=data, **headers)

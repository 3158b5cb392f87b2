import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import Q

from taller.models import Configuracion
from taller.services.base_service import (
    BaseService, success_response,
    ValidationError, NotFoundError,
    require_text, validate_choice,
    TRUE_VALUES, FALSE_VALUES,
)

logger = logging.getLogger(__name__)

CACHE_PREFIX = "configuracion:"


class ConfiguracionService(BaseService):
    """
    Key/value workshop settings.

    Values are stored as text and typed through tipo_dato. Reads go through
    the Django cache (Redis when configured) and every write invalidates the key.
    """

    model = Configuracion
    resource_name = "Configuración"

    @classmethod
    def serialize(cls, config: Configuracion) -> Dict[str, Any]:
        try:
            valor_tipado = cls.convert(config.valor, config.tipo_dato)
        except (ValueError, InvalidOperation):
            valor_tipado = None
        if isinstance(valor_tipado, Decimal):
            valor_tipado = str(valor_tipado)
        return {
            "clave": config.clave,
            "valor": config.valor,
            "valor_tipado": valor_tipado,
            "descripcion": config.descripcion,
            "tipo_dato": config.tipo_dato,
            "updated_at": config.updated_at.isoformat(),
        }

    @classmethod
    def _cache_key(cls, clave: str) -> str:
        return f"{CACHE_PREFIX}{clave}"

    @classmethod
    def _timeout(cls) -> int:
        return getattr(settings, "CONFIGURACION_CACHE_TIMEOUT", 300)

    @classmethod
    def convert(cls, valor: str, tipo_dato: str):
        """Parse a stored text value into its typed Python value."""
        texto = (valor or "").strip()
        if tipo_dato == Configuracion.TipoDato.INTEGER:
            return int(texto)
        if tipo_dato == Configuracion.TipoDato.DECIMAL:
            return Decimal(texto)
        if tipo_dato == Configuracion.TipoDato.BOOLEAN:
            return texto.lower() in TRUE_VALUES
        return valor

    @classmethod
    def _validate_valor(cls, valor: Any, tipo_dato: str) -> str:
        if valor is None:
            raise ValidationError("El valor es obligatorio", "valor")

        if isinstance(valor, bool):
            texto = "true" if valor else "false"
        else:
            texto = str(valor).strip()

        try:
            if tipo_dato == Configuracion.TipoDato.INTEGER:
                int(texto)
            elif tipo_dato == Configuracion.TipoDato.DECIMAL:
                Decimal(texto)
            elif tipo_dato == Configuracion.TipoDato.BOOLEAN:
                if texto.lower() not in TRUE_VALUES | FALSE_VALUES:
                    raise ValueError(texto)
        except (ValueError, InvalidOperation):
            raise ValidationError(f"El valor '{texto}' no es válido para tipo {tipo_dato}", "valor")

        return texto if tipo_dato != Configuracion.TipoDato.STRING else str(valor)

    @classmethod
    def _load(cls, clave: str) -> Optional[Dict[str, str]]:
        key = cls._cache_key(clave)
        cached = cache.get(key)
        if cached is not None:
            return cached

        config = cls.model.objects.filter(clave=clave).first()
        if not config:
            return None

        data = {"valor": config.valor, "tipo_dato": config.tipo_dato}
        cache.set(key, data, cls._timeout())
        return data

    @classmethod
    def invalidate(cls, clave: str) -> None:
        cache.delete(cls._cache_key(clave))

    # ==================== CRUD ====================

    @classmethod
    def list(cls, tipo_dato: str = None, search: str = None) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        if tipo_dato:
            validate_choice(tipo_dato, Configuracion.TipoDato.choices, "tipo_dato")
            queryset = queryset.filter(tipo_dato=tipo_dato)

        if search:
            queryset = queryset.filter(
                Q(clave__icontains=search) | Q(descripcion__icontains=search)
            )

        return success_response({"items": [cls.serialize(c) for c in queryset.order_by("clave")]})

    @classmethod
    def get(cls, clave: str) -> Dict[str, Any]:
        config = cls.model.objects.filter(clave=clave).first()
        if not config:
            raise NotFoundError("Configuración", clave)
        return success_response({"configuracion": cls.serialize(config)})

    @classmethod
    @transaction.atomic
    def set(cls,
            clave: str,
            valor: Any,
            tipo_dato: str = None,
            descripcion: str = None) -> Dict[str, Any]:
        clave = require_text(clave, "clave", 100)
        config = cls.model.objects.select_for_update().filter(clave=clave).first()

        if tipo_dato is None:
            tipo_dato = config.tipo_dato if config else Configuracion.TipoDato.STRING
        validate_choice(tipo_dato, Configuracion.TipoDato.choices, "tipo_dato")
        texto = cls._validate_valor(valor, tipo_dato)

        created = config is None
        if created:
            config = cls.model(clave=clave)

        config.valor = texto
        config.tipo_dato = tipo_dato
        if descripcion is not None:
            config.descripcion = descripcion
        config.save()

        transaction.on_commit(lambda: cls.invalidate(clave))
        cls.invalidate(clave)

        logger.info("Configuración %s: %s=%s", "creada" if created else "actualizada", clave, texto)
        return success_response(
            {"configuracion": cls.serialize(config), "created": created},
            "Configuración guardada"
        )

    @classmethod
    @transaction.atomic
    def delete(cls, clave: str) -> Dict[str, Any]:
        config = cls.model.objects.filter(clave=clave).first()
        if not config:
            raise NotFoundError("Configuración", clave)
        config.delete()
        cls.invalidate(clave)
        return success_response({"clave": clave}, "Configuración eliminada")

    # ==================== TYPED ACCESS ====================

    @classmethod
    def get_string(cls, clave: str, default: str = None) -> Optional[str]:
        data = cls._load(clave)
        return data["valor"] if data else default

    @classmethod
    def get_int(cls, clave: str, default: int = None) -> Optional[int]:
        data = cls._load(clave)
        if not data:
            return default
        try:
            return int(data["valor"].strip())
        except (ValueError, AttributeError):
            logger.warning("Configuración %s no es un entero: %r", clave, data["valor"])
            return default

    @classmethod
    def get_decimal(cls, clave: str, default: Decimal = None) -> Optional[Decimal]:
        data = cls._load(clave)
        if not data:
            return default
        try:
            return Decimal(data["valor"].strip())
        except (InvalidOperation, AttributeError):
            logger.warning("Configuración %s no es un decimal: %r", clave, data["valor"])
            return default

    @classmethod
    def get_bool(cls, clave: str, default: bool = False) -> bool:
        data = cls._load(clave)
        if not data:
            return default
        return data["valor"].strip().lower() in TRUE_VALUES

    @classmethod
    def set_string(cls, clave: str, valor: str, descripcion: str = None) -> Dict[str, Any]:
        return cls.set(clave, valor, Configuracion.TipoDato.STRING, descripcion)

    @classmethod
    def set_int(cls, clave: str, valor: int, descripcion: str = None) -> Dict[str, Any]:
        return cls.set(clave, valor, Configuracion.TipoDato.INTEGER, descripcion)

    @classmethod
    def set_decimal(cls, clave: str, valor, descripcion: str = None) -> Dict[str, Any]:
        return cls.set(clave, valor, Configuracion.TipoDato.DECIMAL, descripcion)

    @classmethod
    def set_bool(cls, clave: str, valor: bool, descripcion: str = None) -> Dict[str, Any]:
        return cls.set(clave, valor, Configuracion.TipoDato.BOOLEAN, descripcion)

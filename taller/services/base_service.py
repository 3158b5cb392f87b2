from typing import Dict, Any, Optional, List, Tuple
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import datetime, date
from django.db.models import Model
from django.utils import timezone
from django.utils.dateparse import parse_date as django_parse_date
from django.utils.dateparse import parse_datetime as django_parse_datetime

TRUE_VALUES = {"true", "1", "yes", "si", "sí"}
FALSE_VALUES = {"false", "0", "no"}


class ServiceError(Exception):
    def __init__(self, message: str, code: str = "ERROR", details: Dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ServiceError):
    def __init__(self, message: str, field: str = None, details: Dict = None):
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field


class NotFoundError(ServiceError):
    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} no encontrado: {identifier}",
            "NOT_FOUND",
            {"resource": resource, "identifier": str(identifier)}
        )


class BusinessRuleError(ServiceError):
    def __init__(self, message: str, rule: str = None):
        super().__init__(message, "BUSINESS_RULE_VIOLATION", {"rule": rule})


class InsufficientStockError(ServiceError):
    def __init__(self, item_name: str, required: int, available: int):
        super().__init__(
            f"Stock insuficiente. Disponible: {available}, Solicitado: {required}",
            "INSUFFICIENT_STOCK",
            {"item": item_name, "required": required, "available": available}
        )


class AuthenticationError(ServiceError):
    def __init__(self, message: str = "Credenciales inválidas"):
        super().__init__(message, "AUTHENTICATION_FAILED")


class PermissionDeniedError(ServiceError):
    def __init__(self, message: str = "No tiene permisos para esta operación"):
        super().__init__(message, "PERMISSION_DENIED")


def success_response(data: Any = None, message: str = "Success") -> Dict:
    response = {"success": True, "message": message}
    if data is not None:
        if isinstance(data, dict):
            response.update(data)
        else:
            response["data"] = data
    return response


def paginate_queryset(queryset, page: int = 1, per_page: int = 20) -> Tuple[List, Dict]:
    page = max(1, page)
    per_page = min(max(1, per_page), 100)

    total = queryset.count()
    total_pages = (total + per_page - 1) // per_page

    offset = (page - 1) * per_page
    items = list(queryset[offset:offset + per_page])

    return items, {
        "page": page,
        "per_page": per_page,
        "total_items": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1
    }


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or value == "":
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def require_decimal(value: Any, field: str) -> Decimal:
    """Strict variant of to_decimal: bad input is a ValidationError, not a default."""
    if value is None or value == "":
        raise ValidationError(f"El campo {field} es obligatorio", field)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Valor decimal inválido para {field}: {value}", field)


def to_int(value: Any, field: str = None, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"Valor entero inválido para {field}: {value}", field)
    try:
        return int(value)
    except (ValueError, TypeError):
        raise ValidationError(f"Valor entero inválido para {field}: {value}", field)


def to_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in TRUE_VALUES | FALSE_VALUES:
        return value.strip().lower() in TRUE_VALUES
    raise ValidationError(f"Valor booleano inválido para {field}: {value}", field)


def round_money(value: Decimal) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_date(value: Any, field: str) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = django_parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"Fecha inválida para {field}: {value}", field)
    return parsed


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = django_parse_datetime(str(value))
            if parsed is None:
                day = django_parse_date(str(value))
                parsed = datetime.combine(day, datetime.min.time()) if day else None
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(f"Fecha inválida para {field}: {value}", field)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def clean_optional(value: Any) -> Optional[str]:
    """Blank strings become None so nullable unique columns stay unique."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def require_text(value: Any, field: str, max_length: int = None) -> str:
    value = "" if value is None else str(value).strip()
    if not value:
        raise ValidationError(f"El campo {field} es obligatorio", field)
    if max_length and len(value) > max_length:
        raise ValidationError(
            f"El campo {field} no puede superar {max_length} caracteres", field
        )
    return value


def validate_choice(value: Any, choices, field: str) -> str:
    valid = [c[0] for c in choices]
    if value not in valid:
        raise ValidationError(f"Valor inválido para {field}. Válidos: {valid}", field)
    return value


def generate_number(prefix: str, model_class: Model, field: str = "numero_orden") -> str:
    today = timezone.localtime()
    date_part = today.strftime("%Y%m%d")
    filter_kwargs = {f"{field}__startswith": f"{prefix}-{date_part}"}
    last = model_class.objects.filter(**filter_kwargs).order_by(f"-{field}").first()

    if last:
        last_num = getattr(last, field)
        try:
            seq = int(last_num.split("-")[-1]) + 1
        except ValueError:
            seq = 1
    else:
        seq = 1

    return f"{prefix}-{date_part}-{seq:04d}"


class BaseService:
    model = None
    resource_name = None

    @classmethod
    def get_resource_name(cls) -> str:
        return cls.resource_name or cls.model.__name__

    @classmethod
    def get_by_id(cls, id: int) -> Optional[Model]:
        try:
            return cls.model.objects.get(pk=id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            return None

    @classmethod
    def get_or_404(cls, id: int) -> Model:
        obj = cls.get_by_id(id)
        if not obj:
            raise NotFoundError(cls.get_resource_name(), id)
        return obj

    @classmethod
    def get_for_update(cls, id: int) -> Model:
        """Row-locked fetch; callers must already be inside transaction.atomic."""
        obj = cls.model.objects.select_for_update().filter(pk=to_int(id, "id")).first()
        if not obj:
            raise NotFoundError(cls.get_resource_name(), id)
        return obj

    @classmethod
    def exists(cls, id: int) -> bool:
        return cls.model.objects.filter(pk=id).exists()

    @classmethod
    def get_active(cls):
        if hasattr(cls.model, 'activo'):
            return cls.model.objects.filter(activo=True)
        return cls.model.objects.all()

    @classmethod
    def set_activo(cls, id: int, activo: bool) -> Dict[str, Any]:
        obj = cls.get_or_404(id)
        obj.activo = to_bool(activo, "activo")
        obj.save(update_fields=["activo", "updated_at"])
        state = "activado" if obj.activo else "desactivado"
        return success_response(
            {"id": obj.pk, "activo": obj.activo},
            f"{cls.get_resource_name()} {state}"
        )

    @classmethod
    def soft_delete(cls, id: int) -> Dict[str, Any]:
        obj = cls.get_or_404(id)
        obj.activo = False
        obj.save(update_fields=["activo", "updated_at"])
        return success_response({"id": obj.pk}, f"{cls.get_resource_name()} eliminado")

    @classmethod
    def check_hard_delete(cls, obj: Model) -> None:
        """Hook: raise BusinessRuleError when obj must not be removed."""

    @classmethod
    def hard_delete(cls, id: int) -> Dict[str, Any]:
        obj = cls.get_or_404(id)
        cls.check_hard_delete(obj)
        obj.delete()
        return success_response({"id": id}, f"{cls.get_resource_name()} eliminado permanentemente")

"""Helpers for applying schemas and reporting their errors to form layers"""

from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticCustomError

CROSS_FIELD_ERROR = "cross_field"


class SchemaResult(BaseModel):
    success: bool
    data: Any = None
    errors: Optional[dict[str, str]] = None


def cross_field_error(path: str, message: str) -> PydanticCustomError:
    """Error for a whole-object check, reported under `path` instead of the model root"""
    return PydanticCustomError(CROSS_FIELD_ERROR, message, {"path": path})


def _message(error: dict[str, Any]) -> str:
    # Custom validators raise ValueError; report its text without pydantic's prefix
    ctx = error.get("ctx") or {}
    if error.get("type") == "value_error" and "error" in ctx:
        return str(ctx["error"])
    return error.get("msg", "Invalid value")


def flatten_errors(errors: Iterable[dict[str, Any]], skip_prefix: tuple[str, ...] = ()) -> dict[str, str]:
    """
    {"dotted.path": "message"} from pydantic error dicts.

    The first message reported for a path wins. Errors on the whole value
    use the empty path; cross-field errors use the path they name. Leading
    location parts listed in `skip_prefix` (e.g. FastAPI's "body") are
    dropped.
    """
    flat: dict[str, str] = {}
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in skip_prefix:
            loc = loc[1:]
        if error.get("type") == CROSS_FIELD_ERROR:
            loc.append((error.get("ctx") or {}).get("path", ""))
        flat.setdefault(".".join(str(part) for part in loc), _message(error))
    return flat


def format_validation_errors(exc: ValidationError) -> dict[str, str]:
    return flatten_errors(exc.errors())


def validate_input(schema: Union[type[BaseModel], TypeAdapter], data: Any) -> SchemaResult:
    """
    Validate data against a model class or TypeAdapter.

    Never raises for invalid data; failures come back as
    SchemaResult(success=False, errors={path: message}).
    """
    try:
        if isinstance(schema, TypeAdapter):
            value = schema.validate_python(data)
        else:
            value = schema.model_validate(data)
    except ValidationError as e:
        return SchemaResult(success=False, errors=format_validation_errors(e))
    return SchemaResult(success=True, data=value)

import math
import re
from typing import Any, Dict

from flask import request

from pawfund.errors import ValidationError

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


def json_body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def form_body() -> Dict[str, Any]:
    """JSON body, or the form fields of a multipart request."""
    if request.form:
        return request.form.to_dict()
    return json_body()


def pick(body: Dict[str, Any], camel: str, default: Any = None) -> Any:
    """Read ``camel`` from the body, falling back to its snake_case spelling."""
    if camel in body:
        return body[camel]
    return body.get(snake(camel), default)


def as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def text(value: Any) -> str:
    """Stripped string form of a scalar field; JSON numbers are accepted as text."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def number(value: Any, field: str) -> float:
    """Parse a finite float. NaN and Infinity are rejected along with garbage."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(out):
        raise ValidationError(f"{field} must be a finite number")
    return out


def limit_arg(default: int = 50, maximum: int = 200) -> int:
    """``?limit=`` clamped to 1..maximum; anything that is not an integer is a 400."""
    raw = request.args.get("limit")
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError("limit must be an integer")
    return max(1, min(value, maximum))

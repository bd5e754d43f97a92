"""Built-in validation rules.

- required, required_create, required_update, required_validate: value must
  not be the zero value of its type (method-scoped variants only apply when
  the calling method matches)
- min, max: numeric bounds, or length bounds for strings and collections
- email: value must be a string shaped like an email address

No transformation rules are built in.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from docforge.validation.errors import RuleParameterError
from docforge.validation.registry import RuleRegistry
from docforge.validation.types import ExecutionContext, Method
from docforge.validation.walker import is_zero, length_of

# Email: Basic RFC 5322 compliant pattern
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)


# =============================================================================
# Required
# =============================================================================


def _required_for(scope: Method | None):
    def required(ctx: ExecutionContext, path: str, value: Any, param: str | None) -> bool:
        if not ctx.method.matches_scope(scope):
            return True
        return not is_zero(value, ctx.tag_key)

    required.__name__ = "required" if scope is None else f"required_{scope.value}"
    return required


required = _required_for(None)
required_create = _required_for(Method.CREATE)
required_update = _required_for(Method.UPDATE)
required_validate = _required_for(Method.VALIDATE)


# =============================================================================
# Bounds
# =============================================================================


def _parse_bound(rule: str, param: str | None) -> Decimal:
    if param is None or param == "":
        raise RuleParameterError(rule, param, "a numeric parameter is required")
    try:
        bound = Decimal(param)
    except InvalidOperation:
        raise RuleParameterError(rule, param, "parameter must be numeric") from None
    if not bound.is_finite():
        raise RuleParameterError(rule, param, "parameter must be finite")
    return bound


def _measure(value: Any) -> Decimal | None:
    """Number compared against a bound: the value itself or its length."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    length = length_of(value)
    return Decimal(length) if length is not None else None


def min_rule(ctx: ExecutionContext, path: str, value: Any, param: str | None) -> bool:
    bound = _parse_bound("min", param)
    measured = _measure(value)
    if measured is None or not measured.is_finite():
        return False
    return measured >= bound


def max_rule(ctx: ExecutionContext, path: str, value: Any, param: str | None) -> bool:
    bound = _parse_bound("max", param)
    measured = _measure(value)
    if measured is None or not measured.is_finite():
        return False
    return measured <= bound


# =============================================================================
# Formats
# =============================================================================


def email(ctx: ExecutionContext, path: str, value: Any, param: str | None) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None


def register_builtin_rules() -> None:
    """Register all built-in rules. Called when docforge.validation is imported."""
    RuleRegistry.register_validation("required", required, "{field} is required")
    RuleRegistry.register_validation(
        "required_create", required_create, "{field} is required on create"
    )
    RuleRegistry.register_validation(
        "required_update", required_update, "{field} is required on update"
    )
    RuleRegistry.register_validation(
        "required_validate", required_validate, "{field} is required"
    )
    RuleRegistry.register_validation("min", min_rule, "{field} must be at least {param}")
    RuleRegistry.register_validation("max", max_rule, "{field} must be at most {param}")
    RuleRegistry.register_validation(
        "email", email, "{field} must be a valid email address"
    )

"""Field-level validation of forecast data received from upstream."""

from typing import Any, TypeVar

import pydantic
from pydantic import AliasChoices, BaseModel, TypeAdapter

from app.core.errors import ValidationError, Violation
from app.core.logging import get_logger
from app.models.forecast import Forecast

logger = get_logger(__name__)

T = TypeVar("T")

FORECAST_LIST = TypeAdapter(list[Forecast])


def wire_names(model: type[BaseModel]) -> dict[str, str]:
    """Map every accepted input name of ``model`` to its output name."""
    names: dict[str, str] = {}

    for name, field in model.model_fields.items():
        wire = field.serialization_alias or field.alias or name
        names[name] = wire
        alias = field.validation_alias
        choices = alias.choices if isinstance(alias, AliasChoices) else [alias]
        for choice in choices:
            if isinstance(choice, str):
                names[choice] = wire

    return names


FORECAST_WIRE_NAMES = wire_names(Forecast)


def violations_from(error: pydantic.ValidationError) -> list[Violation]:
    """Flatten a pydantic error into an ordered set of field violations.

    List indices are moved from the field path into the reason, so the field
    is always the output wire name (``temperatureCelsius``, also for input
    spelled ``temperatureC``) and ``body`` when the payload as a whole has the
    wrong shape.
    """
    violations: dict[tuple[str, str], Violation] = {}

    for item in error.errors(include_url=False):
        location = item["loc"]
        indices = [str(part) for part in location if isinstance(part, int)]
        field = ".".join(
            FORECAST_WIRE_NAMES.get(part, part) for part in location if not isinstance(part, int)
        ) or "body"
        reason = item["msg"]
        if indices:
            reason = f"{reason} (item {', '.join(indices)})"
        violations.setdefault((field, reason), Violation(field=field, reason=reason))

    return list(violations.values())


def validate_payload(adapter: TypeAdapter[T], payload: Any) -> T:
    """Validate a decoded payload against ``adapter``, reporting every violation.

    Raises:
        ValidationError: If any element violates a constraint
    """
    try:
        return adapter.validate_python(payload)
    except pydantic.ValidationError as e:
        violations = violations_from(e)
        logger.warning("upstream_response_invalid", violations=len(violations))
        raise ValidationError(
            violations,
            detail=f"{len(violations)} constraint violation(s) in the upstream response",
        ) from e


def validate_forecasts(candidates: Any) -> list[Forecast]:
    """Validate every forecast candidate and return them as Forecast records.

    Args:
        candidates: Decoded JSON from upstream, expected to be a list of objects

    Returns:
        The forecasts, with values unchanged

    Raises:
        ValidationError: Carrying all violations across all items
    """
    return validate_payload(FORECAST_LIST, candidates)

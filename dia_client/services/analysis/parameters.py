from typing import Any, Dict, Optional, Type
import math
import re

from pydantic import BaseModel, ValidationError as SchemaValidationError

from dia_client.enums.analysis import ParameterType
from dia_client.exceptions import ConfigurationStateError, ValidationError
from dia_client.schemas.analysis.configs.algorithms import AlgorithmParameter
from dia_client.schemas.analysis.configs.parameters import (
    PARAMETER_VALUE_CLASSES,
    BooleanValue,
    NumberValue,
    ParameterValue,
    SelectValue,
    TextValue,
)


_VALUE_CLASSES: Dict[ParameterType, Type[BaseModel]] = {
    ParameterType.NUMBER: NumberValue,
    ParameterType.BOOLEAN: BooleanValue,
    ParameterType.TEXT: TextValue,
    ParameterType.SELECT: SelectValue,
}


def make_parameter_value(parameter: AlgorithmParameter, value: Any) -> Optional[ParameterValue]:
    """
    Wrap a raw value into the ParameterValue variant named by the parameter type.

    No coercion happens: ``"0.5"`` is not a number and ``1`` is not a boolean.
    ``None`` is passed through and means "explicitly cleared".

    Raises:
        ConfigurationStateError: if the value's Python type does not match the parameter type
    """
    if value is None:
        return None

    if isinstance(value, PARAMETER_VALUE_CLASSES):
        if value.type != parameter.type.value:
            raise ConfigurationStateError(
                f"Parameter '{parameter.name}' expects a {parameter.type.value} value, got {value.type}"
            )
        return value

    value_class = _VALUE_CLASSES[parameter.type]
    try:
        return value_class(value=value)
    except SchemaValidationError as e:
        raise ConfigurationStateError(
            f"Parameter '{parameter.name}' expects a {parameter.type.value} value, "
            f"got {type(value).__name__}",
            details={"errors": e.errors(include_url=False)},
        )


def raw_value(value: Any) -> Any:
    """Unwrap a ParameterValue; raw values are returned unchanged."""
    if isinstance(value, PARAMETER_VALUE_CLASSES):
        return value.value
    return value


def is_empty_value(value: Any) -> bool:
    value = raw_value(value)
    return value is None or (isinstance(value, str) and value == "")


def validate_parameter_value(parameter: AlgorithmParameter, value: Any) -> None:
    """
    Validate a value against the parameter's type and declared constraints.

    Meant to be called by input widgets before a value reaches the run
    configuration, and again for every override before a run is submitted.

    Raises:
        ValidationError: if the value has the wrong type or violates a constraint
    """
    value = raw_value(value)
    if value is None:
        return

    name = parameter.name
    constraints = parameter.constraints

    if parameter.type == ParameterType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"Parameter '{name}' must be a number", details={"parameter": name})
        if not math.isfinite(value):
            raise ValidationError(f"Parameter '{name}' must be a finite number", details={"parameter": name})
        if constraints is None:
            return
        if constraints.integer and not float(value).is_integer():
            raise ValidationError(f"Parameter '{name}' must be an integer", details={"parameter": name})
        if constraints.min is not None and value < constraints.min:
            raise ValidationError(f"Parameter '{name}' must be >= {constraints.min}", details={"parameter": name})
        if constraints.max is not None and value > constraints.max:
            raise ValidationError(f"Parameter '{name}' must be <= {constraints.max}", details={"parameter": name})

    elif parameter.type == ParameterType.BOOLEAN:
        if not isinstance(value, bool):
            raise ValidationError(f"Parameter '{name}' must be a boolean", details={"parameter": name})

    elif parameter.type == ParameterType.SELECT:
        if not isinstance(value, str):
            raise ValidationError(f"Parameter '{name}' must be a string", details={"parameter": name})
        if value not in parameter.options:
            raise ValidationError(
                f"Parameter '{name}' must be one of: {parameter.options}",
                details={"parameter": name},
            )

    elif parameter.type == ParameterType.TEXT:
        if not isinstance(value, str):
            raise ValidationError(f"Parameter '{name}' must be a string", details={"parameter": name})
        if constraints is None:
            return
        if constraints.min_length is not None and len(value) < constraints.min_length:
            raise ValidationError(
                f"Parameter '{name}' must be at least {constraints.min_length} characters",
                details={"parameter": name},
            )
        if constraints.max_length is not None and len(value) > constraints.max_length:
            raise ValidationError(
                f"Parameter '{name}' must be at most {constraints.max_length} characters",
                details={"parameter": name},
            )
        if constraints.pattern is not None and not re.match(constraints.pattern, value):
            raise ValidationError(
                f"Parameter '{name}' must match pattern: {constraints.pattern}",
                details={"parameter": name},
            )

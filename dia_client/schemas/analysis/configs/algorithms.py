from typing import List, Optional, Dict, Any
import math

from pydantic import BaseModel, ConfigDict, Field, model_validator, validator

from dia_client.enums.analysis import ParameterType
from dia_client.enums.document import DocumentType

# Backend type names -> client parameter type
_TYPE_ALIASES: Dict[str, ParameterType] = {
    "number": ParameterType.NUMBER,
    "integer": ParameterType.NUMBER,
    "int": ParameterType.NUMBER,
    "float": ParameterType.NUMBER,
    "boolean": ParameterType.BOOLEAN,
    "bool": ParameterType.BOOLEAN,
    "select": ParameterType.SELECT,
    "enum": ParameterType.SELECT,
    "text": ParameterType.TEXT,
    "string": ParameterType.TEXT,
    "str": ParameterType.TEXT,
}
_INTEGER_TYPES = {"integer", "int"}


class ParameterConstraints(BaseModel):
    """Schema for parameter constraints"""
    min: Optional[float] = Field(None, description="Minimum numeric value")
    max: Optional[float] = Field(None, description="Maximum numeric value")
    step: Optional[float] = Field(None, description="Input increment for numeric values")
    integer: bool = Field(False, description="Whether a numeric value must be integral")
    options: Optional[List[str]] = Field(None, description="Allowed values for select parameters")
    pattern: Optional[str] = Field(None, description="Regular expression for text values")
    min_length: Optional[int] = Field(None, ge=0, description="Minimum text length")
    max_length: Optional[int] = Field(None, ge=0, description="Maximum text length")

    model_config = ConfigDict(frozen=True, extra="allow")


class AlgorithmParameter(BaseModel):
    """Schema for algorithm parameter definition"""
    name: str = Field(..., description="Parameter name")
    type: ParameterType = Field(..., description="Parameter type")
    description: Optional[str] = Field(None, description="Parameter description")
    required: bool = Field(True, description="Whether the parameter is required")
    default: Optional[Any] = Field(None, description="Default value if any")
    constraints: Optional[ParameterConstraints] = Field(
        None, description="Parameter constraints (e.g., min, max, options)"
    )

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def normalize_backend_type(cls, data: Any) -> Any:
        """Map backend type names (integer, float, string, ...) onto ParameterType."""
        if not isinstance(data, dict) or data.get("type") is None:
            return data

        raw_type = data["type"]
        key = raw_type.value if isinstance(raw_type, ParameterType) else str(raw_type).lower()
        if key not in _TYPE_ALIASES:
            raise ValueError(f"Unsupported parameter type: {raw_type}")

        constraints = data.get("constraints") or {}
        if isinstance(constraints, dict):
            constraints = dict(constraints)
            if "allowed_values" in constraints and "options" not in constraints:
                constraints["options"] = constraints.pop("allowed_values")
            if key in _INTEGER_TYPES:
                constraints["integer"] = True

        param_type = _TYPE_ALIASES[key]
        if param_type == ParameterType.TEXT and isinstance(constraints, dict) and constraints.get("options"):
            param_type = ParameterType.SELECT

        data = dict(data)
        data["type"] = param_type
        data["constraints"] = constraints or None
        return data

    @model_validator(mode="after")
    def check_default_matches_constraints(self) -> "AlgorithmParameter":
        constraints = self.constraints or ParameterConstraints()
        default = self.default

        if self.type == ParameterType.SELECT:
            if not constraints.options:
                raise ValueError(f"Select parameter '{self.name}' must declare options")
            if default is not None and not isinstance(default, str):
                raise ValueError(f"Default of '{self.name}' must be a string")
            if default is not None and default not in constraints.options:
                raise ValueError(f"Default of '{self.name}' must be one of: {constraints.options}")

        elif self.type == ParameterType.NUMBER and default is not None:
            if isinstance(default, bool) or not isinstance(default, (int, float)):
                raise ValueError(f"Default of '{self.name}' must be a number")
            if not math.isfinite(default):
                raise ValueError(f"Default of '{self.name}' must be a finite number")
            if constraints.min is not None and default < constraints.min:
                raise ValueError(f"Default of '{self.name}' must be >= {constraints.min}")
            if constraints.max is not None and default > constraints.max:
                raise ValueError(f"Default of '{self.name}' must be <= {constraints.max}")

        elif self.type == ParameterType.BOOLEAN and default is not None:
            if not isinstance(default, bool):
                raise ValueError(f"Default of '{self.name}' must be a boolean")

        elif self.type == ParameterType.TEXT and default is not None:
            if not isinstance(default, str):
                raise ValueError(f"Default of '{self.name}' must be a string")

        return self

    @property
    def options(self) -> List[str]:
        if self.constraints and self.constraints.options:
            return list(self.constraints.options)
        return []


class AlgorithmParameterValue(BaseModel):
    """Schema for algorithm parameter value as sent to the backend"""
    name: str = Field(..., description="Parameter name")
    value: Any = Field(None, description="Parameter value")


class AlgorithmDefinition(BaseModel):
    """Schema for a selectable algorithm of an analysis step"""
    code: str = Field(..., description="Unique identifier code within the step")
    name: str = Field(..., description="Human-readable name")
    version: str = Field(..., description="Version string (e.g., '1.0.0')")
    description: Optional[str] = Field(None, description="Detailed description")
    supported_document_types: List[DocumentType] = Field(
        default_factory=list, description="List of supported document types"
    )
    parameters: List[AlgorithmParameter] = Field(
        default_factory=list, description="List of parameter definitions"
    )
    is_active: bool = Field(True, description="Whether this algorithm is active")

    model_config = ConfigDict(frozen=True, extra="ignore", from_attributes=True)

    @validator("parameters")
    def unique_parameter_names(cls, v: List[AlgorithmParameter]) -> List[AlgorithmParameter]:
        names = [p.name for p in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate parameter names: {', '.join(duplicates)}")
        return v

    def get_parameter(self, name: str) -> Optional[AlgorithmParameter]:
        return next((p for p in self.parameters if p.name == name), None)

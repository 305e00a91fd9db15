from typing import Annotated, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr


class NumberValue(BaseModel):
    """Value of a ``number`` parameter"""
    type: Literal["number"] = "number"
    value: Union[StrictInt, StrictFloat]

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)


class BooleanValue(BaseModel):
    """Value of a ``boolean`` parameter"""
    type: Literal["boolean"] = "boolean"
    value: StrictBool

    model_config = ConfigDict(frozen=True)


class TextValue(BaseModel):
    """Value of a ``text`` parameter"""
    type: Literal["text"] = "text"
    value: StrictStr

    model_config = ConfigDict(frozen=True)


class SelectValue(BaseModel):
    """Value of a ``select`` parameter (one of the declared options)"""
    type: Literal["select"] = "select"
    value: StrictStr

    model_config = ConfigDict(frozen=True)


ParameterValue = Annotated[
    Union[NumberValue, BooleanValue, TextValue, SelectValue],
    Field(discriminator="type"),
]

PARAMETER_VALUE_CLASSES = (NumberValue, BooleanValue, TextValue, SelectValue)

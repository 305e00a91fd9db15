from .algorithms import (
    AlgorithmDefinition,
    AlgorithmParameter,
    AlgorithmParameterValue,
    ParameterConstraints,
)
from .steps import StepDefinition
from .definitions import AnalysisDefinition, AnalysisDefinitionInfo
from .parameters import BooleanValue, NumberValue, ParameterValue, SelectValue, TextValue
from .run_config import AlgorithmChoice, ParameterOverride, StepReview, StepRunConfig

__all__ = [
    "AlgorithmDefinition",
    "AlgorithmParameter",
    "AlgorithmParameterValue",
    "ParameterConstraints",
    "StepDefinition",
    "AnalysisDefinition",
    "AnalysisDefinitionInfo",
    "BooleanValue",
    "NumberValue",
    "ParameterValue",
    "SelectValue",
    "TextValue",
    "AlgorithmChoice",
    "ParameterOverride",
    "StepReview",
    "StepRunConfig",
]

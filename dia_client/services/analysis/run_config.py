from typing import Any, Dict, List, Optional
import logging

from dia_client.exceptions import ConfigurationStateError
from dia_client.schemas.analysis.configs.algorithms import AlgorithmDefinition, AlgorithmParameterValue
from dia_client.schemas.analysis.configs.definitions import AnalysisDefinition
from dia_client.schemas.analysis.configs.run_config import (
    AlgorithmChoice,
    ParameterOverride,
    StepReview,
    StepRunConfig,
)
from dia_client.schemas.analysis.configs.steps import StepDefinition
from dia_client.schemas.analysis.executions.analysis_run import (
    AlgorithmSelection,
    AnalysisRunConfig,
    NotificationConfig,
    StepConfig,
)
from dia_client.services.analysis.parameters import is_empty_value, make_parameter_value

logger = logging.getLogger(__name__)


class RunConfiguration:
    """
    In-progress configuration of one analysis run.

    Holds one StepRunConfig per step of the definition. A step moves from
    "no algorithm" to "algorithm with defaults" to "algorithm with overrides";
    disabling a step keeps its algorithm and overrides so that enabling it
    again restores them.

    Completion is derived on every call, nothing is cached.
    """

    def __init__(self, definition: AnalysisDefinition):
        self.definition = definition
        self.steps: Dict[str, StepRunConfig] = {
            step.code: StepRunConfig() for step in definition.steps
        }
        self.notifications = NotificationConfig()
        self.metadata: Dict[str, Any] = {}
        self._algorithms: Dict[str, List[AlgorithmDefinition]] = {
            step.code: list(step.algorithms)
            for step in definition.steps
            if step.has_inline_algorithms
        }

    # Catalog data -----------------------------------------------------------

    def get_step_definition(self, step_code: str) -> StepDefinition:
        step = self.definition.get_step(step_code)
        if step is None:
            raise ConfigurationStateError(
                f"Step {step_code} is not part of analysis {self.definition.code}"
            )
        return step

    def has_step_algorithms(self, step_code: str) -> bool:
        self.get_step_definition(step_code)
        return step_code in self._algorithms

    def set_step_algorithms(self, step_code: str, algorithms: List[AlgorithmDefinition]) -> None:
        """Attach the algorithm list fetched for a step."""
        self.get_step_definition(step_code)
        self._algorithms[step_code] = list(algorithms)

        step_config = self.steps[step_code]
        choice = step_config.algorithm
        if choice is not None:
            algorithm = next((a for a in algorithms if a.code == choice.code), None)
            if algorithm is None or algorithm.version != choice.version:
                logger.warning(
                    f"Selected algorithm {choice.code} {choice.version} is no longer offered for {step_code}; clearing it"
                )
                step_config.algorithm = None
            else:
                stale = [name for name in choice.parameters if algorithm.get_parameter(name) is None]
                for name in stale:
                    del choice.parameters[name]
                if stale:
                    logger.warning(
                        f"Dropped overrides no longer declared by {choice.code}: {', '.join(stale)}"
                    )

        if not any(a.is_active for a in algorithms):
            logger.warning(f"Step {step_code} has no active algorithm and cannot be configured")

    def algorithms_for(self, step_code: str) -> List[AlgorithmDefinition]:
        """Algorithms known for a step (empty until loaded)."""
        self.get_step_definition(step_code)
        return list(self._algorithms.get(step_code, []))

    def get_algorithm(self, step_code: str, algorithm_code: str) -> AlgorithmDefinition:
        algorithm = next(
            (a for a in self.algorithms_for(step_code) if a.code == algorithm_code),
            None
        )
        if algorithm is None:
            raise ConfigurationStateError(
                f"Algorithm {algorithm_code} is not available for step {step_code}"
            )
        return algorithm

    def selected_algorithm(self, step_code: str) -> Optional[AlgorithmDefinition]:
        choice = self._get_step(step_code).algorithm
        if choice is None:
            return None
        return self.get_algorithm(step_code, choice.code)

    # Transitions --------------------------------------------------------------

    def select_algorithm(self, step_code: str, algorithm_code: str, version: Optional[str] = None) -> None:
        """
        Select the algorithm of a step.

        Switching to a different algorithm discards the previous overrides.
        Re-selecting the current algorithm keeps them.

        Raises:
            ConfigurationStateError: unknown step, unknown or inactive algorithm, version mismatch
        """
        step_config = self._get_step(step_code)
        algorithm = self.get_algorithm(step_code, algorithm_code)

        if not algorithm.is_active:
            raise ConfigurationStateError(f"Algorithm {algorithm_code} is not active")
        if version is not None and version != algorithm.version:
            raise ConfigurationStateError(
                f"Algorithm {algorithm_code} is available in version {algorithm.version}, not {version}"
            )

        current = step_config.algorithm
        if current is not None and current.code == algorithm.code and current.version == algorithm.version:
            logger.debug(f"Algorithm {algorithm_code} already selected for {step_code}; keeping parameters")
            return

        step_config.algorithm = AlgorithmChoice(code=algorithm.code, version=algorithm.version)
        logger.debug(f"Selected algorithm {algorithm_code} {algorithm.version} for step {step_code}")

    def set_parameter_value(self, step_code: str, param_name: str, value: Any) -> None:
        """
        Store an explicit value for a parameter of the selected algorithm.

        The value must already have the parameter's semantic type; it is
        stored as-is, constraints are not checked here.

        Raises:
            ConfigurationStateError: no algorithm selected, undeclared parameter, wrong value type
        """
        choice = self._require_algorithm(step_code)
        algorithm = self.get_algorithm(step_code, choice.code)

        parameter = algorithm.get_parameter(param_name)
        if parameter is None:
            raise ConfigurationStateError(
                f"Algorithm {algorithm.code} has no parameter named '{param_name}'"
            )

        choice.parameters[param_name] = ParameterOverride(
            name=param_name,
            value=make_parameter_value(parameter, value),
        )

    def reset_parameters_to_default(self, step_code: str) -> None:
        """Replace all overrides with one explicit entry per parameter set to its default."""
        choice = self._require_algorithm(step_code)
        algorithm = self.get_algorithm(step_code, choice.code)

        choice.parameters = {
            parameter.name: ParameterOverride(
                name=parameter.name,
                value=make_parameter_value(parameter, parameter.default),
            )
            for parameter in algorithm.parameters
        }
        logger.debug(f"Reset parameters of {step_code} to defaults of {algorithm.code}")

    def toggle_step(self, step_code: str, enabled: bool) -> None:
        self._get_step(step_code).enabled = enabled

    def set_notifications(
        self,
        notify_on_completion: Optional[bool] = None,
        notify_on_failure: Optional[bool] = None,
    ) -> None:
        updates = {}
        if notify_on_completion is not None:
            updates["notify_on_completion"] = notify_on_completion
        if notify_on_failure is not None:
            updates["notify_on_failure"] = notify_on_failure
        self.notifications = self.notifications.model_copy(update=updates)

    # Derived state ------------------------------------------------------------

    def effective_parameters(self, step_code: str) -> Dict[str, Any]:
        """Parameter values the backend will use: defaults overlaid with overrides."""
        choice = self._get_step(step_code).algorithm
        if choice is None:
            return {}

        algorithm = self.get_algorithm(step_code, choice.code)
        values = {}
        for parameter in algorithm.parameters:
            override = choice.parameters.get(parameter.name)
            values[parameter.name] = override.raw_value if override is not None else parameter.default
        return values

    def is_step_complete(self, step_code: str) -> bool:
        step_config = self._get_step(step_code)
        if not step_config.enabled:
            return True
        if step_config.algorithm is None:
            return False

        algorithm = self.get_algorithm(step_code, step_config.algorithm.code)
        values = self.effective_parameters(step_code)
        return all(
            not is_empty_value(values[parameter.name])
            for parameter in algorithm.parameters
            if parameter.required
        )

    def incomplete_steps(self) -> List[str]:
        return [code for code in self.steps if not self.is_step_complete(code)]

    def is_complete(self) -> bool:
        return not self.incomplete_steps()

    def review(self) -> List[StepReview]:
        """Ordered per-step summary of the configuration."""
        summary = []
        for step in self.definition.steps:
            step_config = self.steps[step.code]
            algorithm = self.selected_algorithm(step.code)
            summary.append(
                StepReview(
                    step_code=step.code,
                    step_name=step.name,
                    enabled=step_config.enabled,
                    algorithm_code=algorithm.code if algorithm else None,
                    algorithm_name=algorithm.name if algorithm else None,
                    parameters=self.effective_parameters(step.code),
                    complete=self.is_step_complete(step.code),
                )
            )
        return summary

    def to_run_config(self) -> AnalysisRunConfig:
        """Wire form of the configuration; disabled steps carry no algorithm."""
        steps = {}
        for code, step_config in self.steps.items():
            selection = None
            if step_config.enabled and step_config.algorithm is not None:
                choice = step_config.algorithm
                selection = AlgorithmSelection(
                    code=choice.code,
                    version=choice.version,
                    parameters={
                        name: AlgorithmParameterValue(name=name, value=override.raw_value)
                        for name, override in choice.parameters.items()
                    },
                )
            steps[code] = StepConfig(enabled=step_config.enabled, algorithm=selection)

        return AnalysisRunConfig(
            steps=steps,
            notifications=self.notifications,
            metadata=dict(self.metadata),
        )

    # Helpers ------------------------------------------------------------------

    def _get_step(self, step_code: str) -> StepRunConfig:
        step_config = self.steps.get(step_code)
        if step_config is None:
            raise ConfigurationStateError(
                f"Step {step_code} is not part of analysis {self.definition.code}"
            )
        return step_config

    def _require_algorithm(self, step_code: str) -> AlgorithmChoice:
        choice = self._get_step(step_code).algorithm
        if choice is None:
            raise ConfigurationStateError(f"No algorithm selected for step {step_code}")
        return choice

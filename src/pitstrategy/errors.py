"""Exception types for the pit strategy optimizer.

Caller errors (bad race parameters, unknown compounds) abort an optimization
immediately. Infeasible candidates found during enumeration are not errors and
never raise; only the orchestrator turns "nothing feasible" into
NoFeasibleStrategy once every stop count has been tried.

Author: João Pedro Cunha
"""


class StrategyError(ValueError):
    """Base class for all optimizer errors."""


class InvalidConfig(StrategyError):
    """Race parameters are unusable (non-positive lap count or lap time)."""


class UnknownCompound(StrategyError):
    """Compound name is not in the active compound profile set."""

    def __init__(self, compound: str):
        self.compound = compound
        super().__init__(f"Unknown compound: {compound}")


class InfeasibleStint(StrategyError):
    """Stint length falls outside [min_stint, compound max useful laps]."""


class RegulationViolation(StrategyError):
    """Strategy does not use the required number of distinct compounds."""


class NoFeasibleStrategy(StrategyError):
    """No stop count produced a valid strategy for these inputs."""

    def __init__(self, message: str = "No strategy found for these inputs"):
        super().__init__(message)


class OptimizationCancelled(StrategyError):
    """The caller's cancel signal was set while the search was running."""


class ConfigStoreError(StrategyError):
    """Base class for named configuration store errors."""


class DuplicateConfigName(ConfigStoreError):
    """A configuration with this name already exists."""


class ConfigNotFound(ConfigStoreError):
    """No configuration is stored under this name."""

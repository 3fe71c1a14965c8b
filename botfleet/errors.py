"""
Exception hierarchy for the fleet engine.

Only `AgentNotFound`, `CapabilityNotSupported` and
`ExternalCollaboratorFailure` ever reach a caller.  `EvaluationAnomaly`
is raised inside a strategy's decision step and converted into a
``hold`` decision by the agent itself.
"""

from __future__ import annotations


class FleetError(Exception):
    """Base class for all errors raised by the fleet engine."""


class AgentNotFound(FleetError, KeyError):
    """The requested agent name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Agent '{self.name}' not found"


class CapabilityNotSupported(FleetError):
    """The agent does not implement the requested optional capability."""


class EvaluationAnomaly(FleetError, ArithmeticError):
    """A strategy hit a numeric edge case it cannot decide on."""


class ExternalCollaboratorFailure(FleetError):
    """A non-core dependency (tick source, notification sink) failed."""

"""
Simulator Exceptions

All validation failures are raised to the caller with a message naming
the offending field.
"""


class SimulatorError(Exception):
    """Base class for simulator errors."""


class ValidationError(SimulatorError, ValueError):
    """Input has the wrong shape or type."""


class AddressError(ValidationError):
    """Address is not a finite number."""


class TimingError(ValidationError):
    """Timing record is empty, not a mapping, or holds non-numeric values."""


class ShapeError(ValidationError):
    """Instruction sequence is malformed."""


class PatternError(ValidationError):
    """Attack pattern is malformed."""


class ToggleError(ValidationError):
    """Mitigation toggle received a non-boolean value."""


class ConfigurationError(SimulatorError, ValueError):
    """Configuration file or dictionary is invalid."""


class ConstructionError(SimulatorError, TypeError):
    """A required collaborator is missing."""

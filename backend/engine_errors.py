"""
Engine Errors

The calculators never raise for valid-shaped numeric input. These exceptions
cover contract violations that callers should have caught during validation.
"""


class EngineError(Exception):
    """Base class for calculation engine errors"""
    pass


class EngineInputError(EngineError, ValueError):
    """Raised when an input cannot be used by the engine at all"""
    pass

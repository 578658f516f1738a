"""Exceptions raised by the reactive runtime."""


class ReactivityError(Exception):
    """Base class for runtime errors raised by reactform."""


class MaxUpdateDepthError(ReactivityError):
    """Raised when a flush keeps producing new notifications.

    Almost always an effect that unconditionally writes a value it also reads.
    """


class CircularDependencyError(ReactivityError):
    """Raised when a computed value is read during its own evaluation."""

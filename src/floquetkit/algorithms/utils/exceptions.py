"""
Custom exceptions for the algorithms package.
"""


class FloquetError(Exception):
    """Base exception for floquetkit errors.

    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class BackendError(FloquetError):
    """Raised when an exception occurs in a backend.

    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class EngineError(FloquetError):
    """Raised when an exception occurs in the engine.

    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class LinearSolveError(BackendError):
    """Raised when a linear-solve collaborator reports a failed solve.

    Parameters
    ----------
    message : str
        The error message.
    info : Any
        Whatever the linear solver returned as its ``info`` value.
    """

    def __init__(self, message: str, info=None):
        super().__init__(message)
        self.info = info


class UnsupportedSolverFamilyError(FloquetError, TypeError):
    """Raised when an eigensolver configuration belongs to no known family."""


class DimensionMismatchError(FloquetError, ValueError):
    """Raised when a tangent vector does not match the operator dimension."""


class MonodromyNotImplementedError(FloquetError, NotImplementedError):
    """Raised for monodromy representations that a discretization cannot build."""

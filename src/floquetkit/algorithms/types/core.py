"""Abstract base classes for the floquetkit algorithm stack.

Every algorithm in the package is split the same way: an *interface* turns
domain objects into an immutable problem and a backend call, a *backend* does
the numerics, and an *engine* drives the two through a fixed template.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from floquetkit.algorithms.utils.exceptions import EngineError

ConfigT = TypeVar("ConfigT", bound=Union["_FloquetBaseConfig", None])

ProblemT = TypeVar("ProblemT")

ResultT = TypeVar("ResultT")

OutputsT = TypeVar("OutputsT")


@dataclass(frozen=True)
class _BackendCall:
    """Describe a backend call with positional and keyword arguments."""

    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


class _FloquetBaseConfig(ABC):
    """Marker base class for frozen configuration dataclasses.

    Subclasses are frozen dataclasses; validation runs once, right after
    construction.
    """

    __slots__ = ()

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        return None


class _FloquetBaseBackend(ABC):
    """Base class for numerical backends.

    Backends are stateless with respect to a single problem: everything they
    need arrives through :meth:`run`.
    """

    @abstractmethod
    def run(self, *args, **kwargs) -> Any:
        """Run the backend."""
        ...


class _FloquetBaseInterface(Generic[ConfigT, ProblemT, ResultT, OutputsT], ABC):
    """Shared contract for translating between domain objects and backends."""

    def __init__(self) -> None:
        self._config: ConfigT | None = None

    @property
    def current_config(self) -> ConfigT | None:
        return self._config

    @abstractmethod
    def create_problem(self, *, config: ConfigT, **kwargs) -> ProblemT:
        """Compose an immutable problem payload for the backend."""

    @abstractmethod
    def to_backend_inputs(self, problem: ProblemT) -> _BackendCall:
        """Translate a problem into backend invocation arguments."""

    @abstractmethod
    def to_results(self, outputs: OutputsT, *, problem: ProblemT) -> ResultT:
        """Package backend outputs into user-facing result objects."""


class _FloquetBaseEngine(Generic[ProblemT, ResultT, OutputsT], ABC):
    """Template providing the canonical engine flow."""

    def __init__(
        self,
        *,
        backend: _FloquetBaseBackend,
        interface: _FloquetBaseInterface[Any, ProblemT, ResultT, OutputsT] | None = None,
    ) -> None:
        self._backend = backend
        self._interface = interface

    @property
    def backend(self) -> _FloquetBaseBackend:
        return self._backend

    @property
    def interface(self) -> _FloquetBaseInterface[Any, ProblemT, ResultT, OutputsT] | None:
        return self._interface

    def with_interface(
        self,
        interface: _FloquetBaseInterface[Any, ProblemT, ResultT, OutputsT],
    ) -> "_FloquetBaseEngine[ProblemT, ResultT, OutputsT]":
        self._interface = interface
        return self

    def solve(self, problem: ProblemT) -> ResultT:
        """Execute the standard engine orchestration for ``problem``."""

        interface = self._get_interface()
        call = interface.to_backend_inputs(problem)
        self._before_backend(problem, call)

        try:
            outputs = self._invoke_backend(call)
        except Exception as exc:
            self._handle_backend_failure(exc, problem=problem, call=call)

        self._after_backend_success(outputs, problem=problem)
        return interface.to_results(outputs, problem=problem)

    def _get_interface(self) -> _FloquetBaseInterface[Any, ProblemT, ResultT, OutputsT]:
        if self._interface is None:
            raise EngineError(
                f"{self.__class__.__name__} must be configured with an interface before solving."
            )
        return self._interface

    def _before_backend(self, problem: ProblemT, call: _BackendCall) -> None:
        return None

    def _after_backend_success(self, outputs: OutputsT, *, problem: ProblemT) -> None:
        return None

    def _handle_backend_failure(self, exc: Exception, *, problem: ProblemT, call: _BackendCall) -> None:
        raise EngineError(str(exc)) from exc

    def _invoke_backend(self, call: _BackendCall) -> OutputsT:
        return self._backend.run(*call.args, **call.kwargs)

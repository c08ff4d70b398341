"""Diagnostics sinks for the Floquet engines."""

from dataclasses import dataclass, field

from floquetkit.utils.log_config import logger

#: Reported when the monodromy matrix is formed explicitly.
DENSE_MONODROMY = "dense-monodromy"

#: Reported when the eigensolver returns an infinite eigenvalue.
INFINITE_EIGENVALUE = "infinite-eigenvalue"


class LoggingDiagnostics:
    """Forward every diagnostic to the package logger as a warning."""

    def report(self, code: str, message: str) -> None:
        logger.warning("%s [%s]", message, code)


@dataclass
class CollectingDiagnostics:
    """Keep diagnostics in memory, in emission order."""

    records: list[tuple[str, str]] = field(default_factory=list)

    def report(self, code: str, message: str) -> None:
        self.records.append((code, message))

    @property
    def codes(self) -> list[str]:
        return [code for code, _ in self.records]

    def clear(self) -> None:
        self.records.clear()

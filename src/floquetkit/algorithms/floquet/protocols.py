from typing import Protocol, runtime_checkable


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Receiver of non-fatal diagnostics emitted during a Floquet computation.

    Engines never print or warn directly; everything goes through
    :meth:`report` so callers decide how (and whether) to surface it.
    """

    def report(self, code: str, message: str) -> None:
        """Receive one diagnostic.

        Parameters
        ----------
        code : str
            Stable machine-readable identifier, e.g. ``"infinite-eigenvalue"``.
        message : str
            Human readable description.
        """
        ...

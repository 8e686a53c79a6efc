"""Domain exceptions.

All errors raised on purpose by wasconf derive from `WasConfError`, so the
CLI can report them without a traceback while letting genuine bugs through.
"""

from __future__ import annotations


class WasConfError(Exception):
    """Base class for expected, user-facing failures."""


class ManifestError(WasConfError):
    """The manifest file cannot be read or has the wrong shape."""


class ResourceValidationError(WasConfError):
    """A declared resource failed validation."""

    def __init__(self, kind: str, name: str | None, message: str) -> None:
        self.kind = kind
        self.name = name
        label = f"{kind}[{name}]" if name else kind
        super().__init__(f"{label}: {message}")


class ProviderError(WasConfError):
    """A provider refused an operation or met unsupported input."""


class ConfigFileError(WasConfError):
    """A WAS XML configuration file exists but cannot be parsed."""


class WsadminError(WasConfError):
    """wsadmin (or keytool) exited with a failure status."""

    def __init__(self, message: str, *, returncode: int | None = None, output: str = "") -> None:
        self.returncode = returncode
        self.output = output
        super().__init__(message)


class RemoteResourceUnavailable(WasConfError):
    """wsadmin could not resolve the parent config id of a new object."""

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(
            f"Could not create {what}. "
            "This appears to be due to the remote resource not being available. "
            "Ensure that all the necessary services have been created and are running "
            "on this host and the DMGR. If this is the first run, the cluster member "
            "may need to be created on the DMGR."
        )

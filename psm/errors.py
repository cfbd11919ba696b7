from __future__ import annotations


class PsmError(RuntimeError):
    """Base class for errors reported to the user by the CLI."""


class MalformedAddressError(PsmError):
    """Raised when a target does not match ``user@host[:port]``."""

    def __init__(self, value: str):
        super().__init__(f"Malformed address: {value!r} (expected user@host[:port])")
        self.value = value


class InvalidRemoteSpecError(PsmError):
    """Raised when a remote reference does not match ``alias:path``."""

    def __init__(self, value: str):
        super().__init__(f"Invalid remote path: {value!r} (expected alias:path)")
        self.value = value


class UsageError(PsmError):
    """Raised when an operation gets the wrong number of arguments."""


class StorageError(PsmError):
    """Raised when the server file cannot be read or written."""


class ConfigError(PsmError):
    """Raised when the configuration file cannot be read or written."""


class PublicKeyError(PsmError):
    """Raised when the local public key cannot be read."""


class LaunchError(PsmError):
    """Raised when an external executable cannot be started."""

    def __init__(self, executable: str, reason: object):
        super().__init__(f"Failed to launch {executable}: {reason}")
        self.executable = executable

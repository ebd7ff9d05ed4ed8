class RestoreError(RuntimeError):
    """Base error type."""


class ConfigError(RestoreError):
    """Invalid arguments or paths handed to the engine."""


class MetadataParseError(RestoreError):
    """Sidecar JSON is malformed or lacks a consumed field."""


class MetadataWriteError(RestoreError):
    """Embedded EXIF container could not be opened or written."""


class ExternalProcessError(RestoreError):
    """ffmpeg is missing or exited non-zero."""


class VerificationError(RestoreError):
    """Repaired output failed the post-write sanity check."""

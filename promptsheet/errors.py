from __future__ import annotations


class PromptSheetError(Exception):
    """Base class for failures surfaced to the user as a single message."""

    code = "error"


class ConfigMissing(PromptSheetError):
    code = "config_missing"

    def __init__(self, missing: list[str] | None = None) -> None:
        self.missing = list(missing or [])
        detail = ", ".join(self.missing) if self.missing else "store_id, access_key"
        super().__init__(f"Configure the store id and access key first (missing: {detail})")


class ValidationError(PromptSheetError):
    code = "validation_error"

    def __init__(self, message: str, *, fields: list[str] | None = None) -> None:
        self.fields = list(fields or [])
        super().__init__(message)


class RemoteError(PromptSheetError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class RemoteReadError(RemoteError):
    code = "remote_read_error"


class RemoteWriteError(RemoteError):
    code = "remote_write_error"

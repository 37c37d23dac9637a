"""Structured failures raised by the table gateway and the transfer layer."""

from enum import Enum


class ErrorCategory(str, Enum):
    """Failure taxonomy for operations against the external model databases."""

    CONNECTIVITY = "connectivity"
    SCHEMA_UNAVAILABLE = "schema_unavailable"
    FIELD_UNRESOLVED = "field_unresolved"
    STAGE_REJECTED = "stage_rejected"
    APPLY_REJECTED = "apply_rejected"
    UNIT_UNRESOLVED = "unit_unresolved"
    ROW_SHAPE = "row_shape"


class TransferError(Exception):
    """A fatal condition reported by the core.

    Parameters
    ----------
    category : ErrorCategory
        What kind of failure occurred.
    detail : str
        Human-readable description.
    table_key : str | None
        The external table involved, if any.
    status : int | None
        Status code returned by the external service, if any.
    log_text : str
        Import log returned by the external service on apply.
    """

    def __init__(
        self,
        category: ErrorCategory,
        detail: str,
        *,
        table_key: str | None = None,
        status: int | None = None,
        log_text: str = "",
    ) -> None:
        self.category = category
        self.detail = detail
        self.table_key = table_key
        self.status = status
        self.log_text = log_text or ""
        super().__init__(self._render())

    def _render(self) -> str:
        if self.log_text.strip():
            return f"{self.detail} Import log: {self.log_text}"
        return self.detail

"""Result types returned by every lifecycle operation.

INVARIANT: Service methods return a ServiceResult and never raise for
expected conditions. Busy and ineligible files are successful results
with an ``outcome`` in ``data``; only failed operations set ``error``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Why an operation failed: a stable ``code`` plus a readable message."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one service call.

    Attributes:
        ok: False only when the operation failed.
        op: Operation name (``"process"``, ``"archive"``, ``"check"``...).
        data: Operation payload; lifecycle operations always include
            ``path`` and ``outcome``.
        warnings: Problems that did not stop the operation.
        error: Set when ``ok`` is False.
        meta: Telemetry and other diagnostics.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        data: dict[str, Any] | None = None,
        **detail: Any,
    ) -> ServiceResult:
        """Failed result with a :class:`ServiceError` built from the arguments."""
        return cls(
            ok=False,
            op=op,
            data=data or {},
            error=ServiceError(code=code, message=message, detail=detail),
        )

"""Error hierarchy for diffable.

Every public error class inherits from DiffableError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

All of these are caller-contract violations: a malformed snapshot or a
misuse of the single-writer apply path.  None of them is transient, so
retrying the same call without fixing the input raises again.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the library can raise."""

    DUPLICATE_SECTION = "DUPLICATE_SECTION"
    DUPLICATE_ITEM = "DUPLICATE_ITEM"
    UNKNOWN_SECTION = "UNKNOWN_SECTION"
    UNKNOWN_ITEM = "UNKNOWN_ITEM"
    CONCURRENT_APPLY = "CONCURRENT_APPLY"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    DUPLICATE_RECORD = "DUPLICATE_RECORD"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class DiffableError(Exception):
    """Base exception for all diffable errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Snapshot construction errors
# ---------------------------------------------------------------------------

class DuplicateIdentifierError(DiffableError):
    """An identifier would appear twice in a snapshot.

    Raised directly by nothing; catch this to handle both
    :class:`DuplicateSectionError` and :class:`DuplicateItemError`.

    Context keys: ``identifier``.
    """


class DuplicateSectionError(DuplicateIdentifierError):
    """A section identifier is already present in the snapshot.

    Context keys: ``identifier``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_SECTION,
            message=message,
            context=context,
            cause=cause,
        )


class DuplicateItemError(DuplicateIdentifierError):
    """An item identifier is already present somewhere in the snapshot.

    Context keys: ``identifier``, ``section`` (where it already lives, if
    known).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_ITEM,
            message=message,
            context=context,
            cause=cause,
        )


class UnknownSectionError(DiffableError):
    """A section identifier referenced by a mutation is not in the snapshot.

    Context keys: ``identifier``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNKNOWN_SECTION,
            message=message,
            context=context,
            cause=cause,
        )


class UnknownItemError(DiffableError):
    """An item identifier referenced by a mutation is not in the snapshot.

    Context keys: ``identifier``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNKNOWN_ITEM,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Apply errors
# ---------------------------------------------------------------------------

class ConcurrentApplyError(DiffableError):
    """An apply was requested while another one is still running and the
    configured policy is ``"raise"``.

    Context keys: ``mode`` (``"diff"`` or ``"reload"``).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONCURRENT_APPLY,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Repository errors
# ---------------------------------------------------------------------------

class RecordNotFoundError(DiffableError):
    """A repository lookup or update referenced an unknown record id.

    Context keys: ``record_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RECORD_NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class DuplicateRecordError(DiffableError):
    """A record with the same id is already stored in the repository.

    Context keys: ``record_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_RECORD,
            message=message,
            context=context,
            cause=cause,
        )

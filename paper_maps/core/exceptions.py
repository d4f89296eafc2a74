"""Error taxonomy shared by the assembler, the fetch cache and the link checker.

Every domain error derives from ``PipelineError`` and belongs to one of
four categories.  The category tells the caller what to do about it:

=============== =========== ==============================================
Category        Retryable   Meaning
=============== =========== ==============================================
``validation``  no          a feature breaks the schema; fix the source
``transient``   yes         network trouble or a 5xx; re-run later
``permanent``   no          e.g. a 404 or an unregistered publisher
``contract``    no          a collaborator wrote data of the wrong shape
=============== =========== ==============================================

``to_error_dict()`` gives the same keys for every error, which is what the
CLI logs when a command fails.
"""

from __future__ import annotations

from typing import ClassVar


class PipelineError(Exception):
    """Base class for pipeline errors.

    Attributes:
        message: Human-readable description.
        stage: Where it happened (``"validate_feature"``, ``"fetch"``, ...).
        code: Stable machine-readable code, e.g. ``"FEATURE_INVALID"``.
        retryable: Whether re-running later may succeed.
        correlation_id: Source name, feature index or URL for diagnostics.
    """

    #: Subclasses set these instead of passing ``stage=``/``code=`` each time.
    default_stage: ClassVar[str] = ""
    default_code: ClassVar[str] = ""
    #: ``None`` lets ``retryable`` decide the category.
    category_name: ClassVar[str | None] = None
    default_retryable: ClassVar[bool] = False

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool | None = None,
        correlation_id: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = self.default_retryable if retryable is None else retryable
        self.correlation_id = correlation_id

    @property
    def category(self) -> str:
        if self.category_name is not None:
            return self.category_name
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return ``category``, ``code``, ``stage``, ``message``, ``retryable``
        and ``correlation_id``."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """A feature or collection breaks the schema."""

    category_name = "validation"


class TransientError(PipelineError):
    """A failure that may go away on a later run."""

    category_name = "transient"
    default_retryable = True


class PermanentError(PipelineError):
    """A failure re-running will not fix."""

    category_name = "permanent"


class ContractError(PipelineError):
    """A collaborator handed over data of the wrong shape."""

    category_name = "contract"

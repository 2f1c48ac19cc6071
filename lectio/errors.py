"""Domain exceptions for generation workflows and CLI diagnostics."""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific workflow stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped workflow error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class MissingCredentialError(RuntimeError):
    """Raised when generation is requested without a provider API key.

    This is a precondition failure: it is never retried and never moves a
    section into the `error` state.
    """

    def __init__(self, message: str = "Gemini API key is not configured.") -> None:
        super().__init__(message)


class SectionStateError(RuntimeError):
    """Raised for section edits or status transitions the state machine forbids."""

    def __init__(self, section_id: str, detail: str) -> None:
        super().__init__(f"Section `{section_id}`: {detail}")
        self.section_id = section_id
        self.detail = detail

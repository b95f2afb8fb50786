"""Validation Engine - Pure logic for the proof-validation state machine.

This engine provides stateless, pure Python functions for:
- Workflow state transitions (idle / checking / pending_review / approved / rejected)
- Mapping server validation statuses and status responses to workflow states
- Client-side proof checks mirroring the server thresholds
- Optimistic validation records and the Unknown | Optimistic | Confirmed snapshot
- Rejection reason and review-window projections

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
Polling, request tagging and callbacks belong in ValidationWorkflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_ms_until

if TYPE_CHECKING:
    from ..type_defs import ChallengeValidationData, ValidationStatusResponse


# =============================================================================
# EXCEPTIONS
# =============================================================================

PROOF_ERROR_TEXT_TOO_SHORT = "proof_text_too_short"
PROOF_ERROR_NO_IMAGES = "proof_images_missing"
PROOF_ERROR_TOO_MANY_IMAGES = "proof_images_too_many"


class ProofValidationError(ValueError):
    """Raised when a proof fails the client-side checks.

    Attributes:
        reason: One of the PROOF_ERROR_* keys
    """

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        super().__init__(message)


# =============================================================================
# SNAPSHOT
# =============================================================================


@dataclass(frozen=True)
class ValidationSnapshot:
    """Tagged view of what is known about the current validation.

    kind is one of const.SNAPSHOT_UNKNOWN, SNAPSHOT_OPTIMISTIC, SNAPSHOT_CONFIRMED.
    Optimistic data was built locally at submission time; confirmed data came
    from the server.
    """

    kind: str = const.SNAPSHOT_UNKNOWN
    data: ChallengeValidationData | None = None

    @classmethod
    def unknown(cls) -> ValidationSnapshot:
        """Nothing known yet."""
        return cls()

    @classmethod
    def optimistic(cls, data: ChallengeValidationData) -> ValidationSnapshot:
        """Locally-built provisional record."""
        return cls(const.SNAPSHOT_OPTIMISTIC, data)

    @classmethod
    def confirmed(cls, data: ChallengeValidationData) -> ValidationSnapshot:
        """Server-reported record."""
        return cls(const.SNAPSHOT_CONFIRMED, data)

    @property
    def is_unknown(self) -> bool:
        return self.kind == const.SNAPSHOT_UNKNOWN

    @property
    def is_optimistic(self) -> bool:
        return self.kind == const.SNAPSHOT_OPTIMISTIC

    @property
    def is_confirmed(self) -> bool:
        return self.kind == const.SNAPSHOT_CONFIRMED

    @property
    def validation_id(self) -> str | None:
        if self.data is None:
            return None
        return self.data.get(const.DATA_VALIDATION_ID)


# =============================================================================
# VALIDATION ENGINE
# =============================================================================


class ValidationEngine:
    """Pure logic engine for the per-redemption validation workflow.

    All methods are static - no instance state.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        const.WORKFLOW_STATE_IDLE: [const.WORKFLOW_STATE_CHECKING],
        const.WORKFLOW_STATE_CHECKING: [
            const.WORKFLOW_STATE_PENDING_REVIEW,
            const.WORKFLOW_STATE_APPROVED,
            const.WORKFLOW_STATE_REJECTED,
            const.WORKFLOW_STATE_IDLE,
        ],
        # Only a poll result leaves pending_review
        const.WORKFLOW_STATE_PENDING_REVIEW: [
            const.WORKFLOW_STATE_APPROVED,
            const.WORKFLOW_STATE_REJECTED,
        ],
        # Explicit retry with new proof
        const.WORKFLOW_STATE_REJECTED: [const.WORKFLOW_STATE_CHECKING],
        const.WORKFLOW_STATE_APPROVED: [],
    }

    TERMINAL_STATES: frozenset[str] = frozenset(
        {const.WORKFLOW_STATE_APPROVED, const.WORKFLOW_STATE_REJECTED}
    )

    # =========================================================================
    # STATE TRANSITIONS
    # =========================================================================

    @staticmethod
    def can_transition(from_state: str, to_state: str) -> bool:
        """Check whether a workflow state change is allowed.

        Staying in the same state is always allowed.
        """
        if from_state == to_state:
            return True
        return to_state in ValidationEngine.VALID_TRANSITIONS.get(from_state, [])

    @staticmethod
    def state_for_status(status: str | None) -> str:
        """Map a server validation status to a workflow state.

        Args:
            status: pending_review, approved_manual, approved_ai, rejected_manual,
                rejected_ai, or None

        Returns:
            Workflow state; unknown or missing statuses map to idle.
        """
        if status == const.VALIDATION_STATUS_PENDING_REVIEW:
            return const.WORKFLOW_STATE_PENDING_REVIEW
        if status in const.VALIDATION_APPROVED_STATUSES:
            return const.WORKFLOW_STATE_APPROVED
        if status in const.VALIDATION_REJECTED_STATUSES:
            return const.WORKFLOW_STATE_REJECTED
        return const.WORKFLOW_STATE_IDLE

    @staticmethod
    def state_for_response(
        response: ValidationStatusResponse,
    ) -> tuple[str, ChallengeValidationData | None]:
        """Map a validation-status response to (workflow state, validation)."""
        validation = response.get(const.API_FIELD_VALIDATION)
        if not response.get(const.API_FIELD_HAS_VALIDATION) or not validation:
            return const.WORKFLOW_STATE_IDLE, None
        state = ValidationEngine.state_for_status(
            validation.get(const.DATA_VALIDATION_STATUS)
        )
        return state, validation

    @staticmethod
    def is_terminal_status(status: str | None) -> bool:
        """Return True for approved_* and rejected_* statuses."""
        return (
            status in const.VALIDATION_APPROVED_STATUSES
            or status in const.VALIDATION_REJECTED_STATUSES
        )

    # =========================================================================
    # PROOF CHECKS
    # =========================================================================

    @staticmethod
    def validate_proof(
        proof_text: str | None, proof_image_urls: list[str] | None
    ) -> tuple[str, list[str]]:
        """Apply the server's proof rules before any network call.

        Args:
            proof_text: Free text describing the completed challenge
            proof_image_urls: Image URLs (1 to 2)

        Returns:
            (trimmed text, cleaned url list) ready to submit.

        Raises:
            ProofValidationError: If the text is too short or the image count
                is out of range.
        """
        text = (proof_text or "").strip()
        if len(text) < const.PROOF_TEXT_MIN_LENGTH:
            raise ProofValidationError(
                PROOF_ERROR_TEXT_TOO_SHORT,
                f"Proof text must be at least {const.PROOF_TEXT_MIN_LENGTH} "
                f"characters (got {len(text)})",
            )

        images = [url.strip() for url in proof_image_urls or [] if url and url.strip()]
        if len(images) < const.PROOF_IMAGES_MIN:
            raise ProofValidationError(
                PROOF_ERROR_NO_IMAGES,
                f"At least {const.PROOF_IMAGES_MIN} proof image is required",
            )
        if len(images) > const.PROOF_IMAGES_MAX:
            raise ProofValidationError(
                PROOF_ERROR_TOO_MANY_IMAGES,
                f"At most {const.PROOF_IMAGES_MAX} proof images are allowed "
                f"(got {len(images)})",
            )

        return text, images

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    @staticmethod
    def build_optimistic_validation(
        validation_id: str,
        now: datetime,
        review_window_ms: int = const.VALIDATION_REVIEW_WINDOW_MS,
    ) -> ChallengeValidationData:
        """Build the provisional record shown right after a submission.

        Args:
            validation_id: Id returned by the submission
            now: Current UTC time
            review_window_ms: Maximum review window used for the expiry estimate

        Returns:
            A pending_review validation expiring at now + review window.
        """
        expires_at = now + timedelta(milliseconds=review_window_ms)
        return {
            "id": validation_id,
            "status": const.VALIDATION_STATUS_PENDING_REVIEW,
            "created_at": now.isoformat(),
            "expires_at": expires_at.isoformat(),
            "reviewed_at": None,
            "reviewer_notes": None,
            "ai_result": None,
        }

    @staticmethod
    def merge_snapshot(
        current: ValidationSnapshot, incoming: ValidationSnapshot
    ) -> ValidationSnapshot:
        """Decide which snapshot wins.

        - Confirmed data always replaces whatever is held.
        - Optimistic data replaces unknown or optimistic data, and replaces
          confirmed data only for a different validation (a fresh retry).
          A provisional copy never overwrites the server's view of the same
          validation.
        - Unknown (a reset) clears everything.
        """
        if incoming.is_confirmed or incoming.is_unknown:
            return incoming
        if current.is_confirmed and current.validation_id == incoming.validation_id:
            return current
        return incoming

    # =========================================================================
    # PROJECTIONS
    # =========================================================================

    @staticmethod
    def rejection_reason(validation: ChallengeValidationData | None) -> str:
        """Reviewer notes, else the automated judge's reasoning, else a default."""
        if validation:
            notes = validation.get(const.DATA_VALIDATION_REVIEWER_NOTES)
            if notes:
                return notes
            ai_result: dict[str, Any] | None = validation.get(
                const.DATA_VALIDATION_AI_RESULT
            )  # type: ignore[assignment]
            if ai_result and ai_result.get(const.DATA_AI_RESULT_REASONING):
                return ai_result[const.DATA_AI_RESULT_REASONING]
        return const.DEFAULT_REJECTION_REASON

    @staticmethod
    def time_until_expiry_ms(
        validation: ChallengeValidationData | None, now: datetime | None = None
    ) -> int:
        """Milliseconds left in the review window, floored at zero."""
        if not validation:
            return 0
        return dt_ms_until(validation.get(const.DATA_VALIDATION_EXPIRES_AT), now)

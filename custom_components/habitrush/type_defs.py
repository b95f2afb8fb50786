"""Type definitions for HabitRush data structures.

TypedDicts describe the JSON payloads exchanged with the HabitRush server and
the snapshots handed to the pure engines. Keys mirror the wire format, so a
payload can be passed through without renaming.

IMPORTANT: This file must NOT import from coordinator.py, managers, or any file
that imports coordinator to avoid circular dependencies.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Server payloads are not validated at
runtime; all null checks and .get() defaults stay in the engines and managers.
"""

from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

RedemptionId = str  # UUID string
ChallengeId = str  # UUID string
HabitId = str  # UUID string
LifeChallengeId = str  # "challenge_week_no_lives"
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00Z"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"

RedemptionStatus = Literal[
    "pending", "challenge_assigned", "redeemed_life", "completed", "expired"
]
ValidationStatus = Literal[
    "pending_review", "approved_manual", "approved_ai", "rejected_manual", "rejected_ai"
]
WorkflowState = Literal["idle", "checking", "pending_review", "approved", "rejected"]
RedeemableType = Literal["once", "unlimited"]
LifeChallengeStatus = Literal["pending", "obtained", "redeemed"]


# =============================================================================
# Pending Redemptions
# =============================================================================


class ChallengeData(TypedDict):
    """A substitute challenge offered for a pending redemption."""

    id: ChallengeId
    title: str
    description: str
    difficulty: str
    type: NotRequired[str]


class PendingRedemptionData(TypedDict):
    """One failed-habit occurrence awaiting resolution."""

    id: RedemptionId
    user_id: NotRequired[str]
    habit_id: HabitId
    habit_name: str
    failed_date: ISODate
    expires_at: NotRequired[ISODatetime]
    status: RedemptionStatus
    time_remaining_ms: int
    challenge_id: NotRequired[ChallengeId | None]
    available_challenges: list[ChallengeData]
    assigned_challenge: NotRequired[ChallengeData | None]


class RedeemLifeResponse(TypedDict):
    """Response of POST /pending-redemptions/{id}/redeem-life."""

    success: bool
    message: str
    current_lives: int
    is_dead: bool


class UserChallengeData(TypedDict):
    """Assignment record created when a challenge is chosen."""

    id: str
    challenge_id: ChallengeId
    habit_id: HabitId
    status: str
    assigned_at: ISODatetime


class RedeemChallengeResponse(TypedDict):
    """Response of POST /pending-redemptions/{id}/redeem-challenge."""

    success: bool
    message: str
    user_challenge: UserChallengeData
    challenge: ChallengeData
    habit_still_blocked: bool


# =============================================================================
# Validations
# =============================================================================


class AiResultData(TypedDict):
    """Automated judge result attached to a validation."""

    is_valid: NotRequired[bool]
    confidence_score: float
    reasoning: str


class ChallengeValidationData(TypedDict):
    """A submitted proof and its review state."""

    id: str
    status: ValidationStatus
    created_at: ISODatetime
    expires_at: ISODatetime
    reviewed_at: ISODatetime | None
    reviewer_notes: str | None
    ai_result: AiResultData | None


class SubmitProofResponse(TypedDict):
    """Response of POST /pending-redemptions/{id}/complete-challenge."""

    success: bool
    message: str
    validation_id: str
    status: ValidationStatus


class ValidationStatusResponse(TypedDict):
    """Response of GET /pending-redemptions/{id}/validation-status."""

    success: NotRequired[bool]
    has_validation: bool
    validation: NotRequired[ChallengeValidationData | None]


# =============================================================================
# User / Habits / Completions
# =============================================================================


class UserProfileData(TypedDict):
    """Subset of GET /users/me used by the integration."""

    id: str
    username: NotRequired[str]
    name: NotRequired[str]
    email: NotRequired[str]
    lives: int
    max_lives: int
    xp: NotRequired[int]


class HabitData(TypedDict):
    """Subset of a habit from GET /habits."""

    id: HabitId
    name: str
    start_date: ISODate
    target_date: NotRequired[ISODate | None]
    current_streak: int
    progress_type: str
    active_by_user: bool
    is_blocked: NotRequired[bool]


class CompletionData(TypedDict):
    """A completion record from GET /habits/{id}/completions."""

    id: str
    habit_id: HabitId
    date: ISODate
    completed: bool
    progress_type: str
    progress_value: NotRequired[float | None]
    target_value: NotRequired[float | None]
    notes: NotRequired[str | None]
    created_at: NotRequired[ISODatetime]
    completed_at: NotRequired[ISODatetime | None]


# =============================================================================
# Life Challenges
# =============================================================================


class LifeChallengeDefinition(TypedDict):
    """A standing bonus objective."""

    life_challenge_id: LifeChallengeId
    title: str
    description: str
    reward: int
    redeemable_type: RedeemableType
    icon: str
    verification_function: str


class LifeChallengeServerStatus(TypedDict):
    """One row of GET /life-challenges?withStatus=true."""

    life_challenge_id: LifeChallengeId
    title: str
    description: str
    reward: int
    redeemable_type: RedeemableType
    icon: str
    status: LifeChallengeStatus
    obtained_at: ISODatetime | None
    redeemed_at: ISODatetime | None
    can_redeem: bool


class LifeChallengeEvaluation(TypedDict):
    """Result of evaluating one life challenge against a snapshot."""

    life_challenge_id: LifeChallengeId
    title: str
    description: str
    reward: int
    redeemable_type: RedeemableType
    icon: str
    status: LifeChallengeStatus
    redeemable: bool


class RedeemLifeChallengeResponse(TypedDict):
    """Response of POST /life-challenges/{id}/redeem."""

    success: bool
    message: str
    livesGained: int
    currentLives: int


class HistorySnapshot(TypedDict):
    """Aggregate state handed to the life-challenge predicates.

    Built by LifeChallengeManager from coordinator data plus the local
    redemption ledger. Predicates never mutate it.
    """

    today: ISODate
    timezone: str
    lives: int
    max_lives: int
    habits: list[HabitData]
    completions: list[CompletionData]
    # life_challenge_id -> number of successful redemptions
    redemption_counts: dict[LifeChallengeId, int]


# =============================================================================
# Coordinator data
# =============================================================================


class CoordinatorData(TypedDict):
    """Data returned by HabitRushDataCoordinator._async_update_data."""

    user: UserProfileData
    habits: list[HabitData]
    completions: list[CompletionData]
    life_challenges: list[LifeChallengeServerStatus]


# Ledger persisted by HabitRushStorageManager
LedgerData = dict[str, Any]

# File: const.py
"""Constants for the HabitRush integration.

This file centralizes configuration keys, defaults, remote API paths, data keys,
signal and event names, service names and the standing life-challenge table so
that every module refers to the same identifiers.
"""

import logging

import homeassistant.util.dt as dt_util
from homeassistant.const import Platform


def set_default_timezone(hass):
    """Set the default timezone based on the Home Assistant configuration."""
    global DEFAULT_TIME_ZONE
    DEFAULT_TIME_ZONE = dt_util.get_time_zone(hass.config.time_zone)


# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
HABITRUSH_TITLE = "HabitRush"

DOMAIN = "habitrush"

LOGGER = logging.getLogger(__package__)

PLATFORMS = [
    Platform.SENSOR,
]

COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"
API_CLIENT = "api_client"

STORAGE_MANAGER = "storage_manager"
STORAGE_KEY = "habitrush.redemptions"
STORAGE_VERSION = 1

# Default timezone: initially None, to be set once hass is available.
DEFAULT_TIME_ZONE = None


# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_BASE_URL = "base_url"
CONF_API_TOKEN = "api_token"
CONF_UPDATE_INTERVAL = "update_interval"
CONF_REDEMPTION_POLL_INTERVAL = "redemption_poll_interval"
CONF_VALIDATION_POLL_INTERVAL = "validation_poll_interval"

CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"

CFOP_ERROR_CANNOT_CONNECT = "cannot_connect"
CFOP_ERROR_INVALID_AUTH = "invalid_auth"
CFOP_ERROR_UNKNOWN = "unknown"


# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_BASE_URL = "http://localhost:3000/api"
DEFAULT_UPDATE_INTERVAL = 5  # minutes
DEFAULT_REDEMPTION_POLL_INTERVAL = 30  # seconds
DEFAULT_VALIDATION_POLL_INTERVAL = 30  # seconds
DEFAULT_REQUEST_TIMEOUT = 10  # seconds

MIN_UPDATE_INTERVAL = 1
MAX_UPDATE_INTERVAL = 60
MIN_POLL_INTERVAL = 5
MAX_POLL_INTERVAL = 300

# Countdown tick in milliseconds; remaining time is decremented by this amount
COUNTDOWN_INTERVAL_MS = 1000
URGENT_THRESHOLD_MS = 3 * 60 * 60 * 1000
GRACE_WINDOW_MS = 24 * 60 * 60 * 1000
# Maximum review window used for the optimistic expiry of a fresh validation
VALIDATION_REVIEW_WINDOW_MS = 60 * 60 * 1000

PROOF_TEXT_MIN_LENGTH = 20
PROOF_IMAGES_MIN = 1
PROOF_IMAGES_MAX = 2
MAX_VALIDATION_ATTEMPTS = 3

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * 60 * 1000


# ------------------------------------------------------------------------------------------------
# Remote API
# ------------------------------------------------------------------------------------------------
API_PATH_PENDING_REDEMPTIONS = "/pending-redemptions"
API_PATH_REDEEM_LIFE = "/pending-redemptions/{redemption_id}/redeem-life"
API_PATH_REDEEM_CHALLENGE = "/pending-redemptions/{redemption_id}/redeem-challenge"
API_PATH_COMPLETE_CHALLENGE = "/pending-redemptions/{redemption_id}/complete-challenge"
API_PATH_VALIDATION_STATUS = "/pending-redemptions/{redemption_id}/validation-status"
API_PATH_USER_PROFILE = "/users/me"
API_PATH_HABITS = "/habits"
API_PATH_HABIT_COMPLETIONS = "/habits/{habit_id}/completions"
API_PATH_LIFE_CHALLENGES = "/life-challenges"
API_PATH_REDEEM_LIFE_CHALLENGE = "/life-challenges/{life_challenge_id}/redeem"
API_PARAM_WITH_STATUS = "withStatus"

HTTP_HEADER_AUTHORIZATION = "Authorization"
HTTP_BEARER_PREFIX = "Bearer "

# Response / request fields
API_FIELD_MESSAGE = "message"
API_FIELD_ERROR_CODE = "error_code"
API_FIELD_PENDING_REDEMPTIONS = "pending_redemptions"
API_FIELD_CURRENT_LIVES = "current_lives"
API_FIELD_IS_DEAD = "is_dead"
API_FIELD_CHALLENGE_ID = "challenge_id"
API_FIELD_USER_CHALLENGE = "user_challenge"
API_FIELD_CHALLENGE = "challenge"
API_FIELD_HABIT_STILL_BLOCKED = "habit_still_blocked"
API_FIELD_PROOF_TEXT = "proof_text"
API_FIELD_PROOF_IMAGE_URLS = "proof_image_urls"
API_FIELD_VALIDATION_ID = "validation_id"
API_FIELD_HAS_VALIDATION = "has_validation"
API_FIELD_VALIDATION = "validation"
API_FIELD_LIVES_GAINED = "livesGained"
API_FIELD_CURRENT_LIVES_CAMEL = "currentLives"


# ------------------------------------------------------------------------------------------------
# Error Codes
# ------------------------------------------------------------------------------------------------
ERROR_VALIDATION_PENDING = "VALIDATION_PENDING"
ERROR_MAX_RETRIES_EXCEEDED = "MAX_RETRIES_EXCEEDED"
ERROR_REDEMPTION_TIME_EXPIRED = "REDEMPTION_TIME_EXPIRED"
ERROR_REDEMPTION_EXPIRED = "REDEMPTION_EXPIRED"
ERROR_IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
ERROR_INVALID_IMAGE_FORMAT = "INVALID_IMAGE_FORMAT"
ERROR_NO_CHALLENGE_ASSIGNED = "NO_CHALLENGE_ASSIGNED"
ERROR_ALREADY_COMPLETED = "ALREADY_COMPLETED"
ERROR_INSUFFICIENT_LIFE_SLOTS = "INSUFFICIENT_LIFE_SLOTS"
ERROR_CHALLENGE_NOT_FOUND = "CHALLENGE_NOT_FOUND"
ERROR_ALREADY_REDEEMED = "ALREADY_REDEEMED"
ERROR_REQUIREMENTS_NOT_MET = "REQUIREMENTS_NOT_MET"
ERROR_NETWORK = "NETWORK_ERROR"
ERROR_UNAUTHORIZED = "UNAUTHORIZED"
ERROR_UNKNOWN = "UNKNOWN_ERROR"

ERROR_MESSAGES: dict[str, str] = {
    ERROR_VALIDATION_PENDING: (
        "There is already a proof under review for this redemption. "
        "Wait for the result."
    ),
    ERROR_MAX_RETRIES_EXCEEDED: (
        f"You reached the limit of {MAX_VALIDATION_ATTEMPTS} attempts. "
        "The life will be deducted automatically when the window expires."
    ),
    ERROR_REDEMPTION_TIME_EXPIRED: (
        "The 24 hour window to complete the challenge has expired."
    ),
    ERROR_REDEMPTION_EXPIRED: "This redemption has already expired.",
    ERROR_IMAGE_TOO_LARGE: "An image is too large. Maximum size is 5MB.",
    ERROR_INVALID_IMAGE_FORMAT: "Invalid image format. Use JPEG, PNG, GIF or WebP.",
    ERROR_NO_CHALLENGE_ASSIGNED: "No challenge is assigned to this redemption yet.",
    ERROR_ALREADY_COMPLETED: "This challenge was already completed.",
    ERROR_INSUFFICIENT_LIFE_SLOTS: "There are not enough empty life slots.",
    ERROR_CHALLENGE_NOT_FOUND: "Life challenge not found.",
    ERROR_ALREADY_REDEEMED: "This life challenge was already redeemed.",
    ERROR_REQUIREMENTS_NOT_MET: "The requirements for this life challenge are not met.",
    ERROR_NETWORK: "Could not reach the HabitRush server.",
    ERROR_UNAUTHORIZED: "The HabitRush session is no longer valid.",
}
ERROR_MESSAGE_GENERIC = "The request to the HabitRush server failed."

# Business errors after which no retry is offered
TERMINAL_ERROR_CODES = frozenset(
    {
        ERROR_MAX_RETRIES_EXCEEDED,
        ERROR_REDEMPTION_TIME_EXPIRED,
        ERROR_REDEMPTION_EXPIRED,
    }
)


# ------------------------------------------------------------------------------------------------
# Pending Redemptions
# ------------------------------------------------------------------------------------------------
DATA_REDEMPTION_ID = "id"
DATA_REDEMPTION_USER_ID = "user_id"
DATA_REDEMPTION_HABIT_ID = "habit_id"
DATA_REDEMPTION_HABIT_NAME = "habit_name"
DATA_REDEMPTION_FAILED_DATE = "failed_date"
DATA_REDEMPTION_EXPIRES_AT = "expires_at"
DATA_REDEMPTION_STATUS = "status"
DATA_REDEMPTION_TIME_REMAINING_MS = "time_remaining_ms"
DATA_REDEMPTION_CHALLENGE_ID = "challenge_id"
DATA_REDEMPTION_AVAILABLE_CHALLENGES = "available_challenges"
DATA_REDEMPTION_ASSIGNED_CHALLENGE = "assigned_challenge"

REDEMPTION_STATUS_PENDING = "pending"
REDEMPTION_STATUS_CHALLENGE_ASSIGNED = "challenge_assigned"
REDEMPTION_STATUS_REDEEMED_LIFE = "redeemed_life"
REDEMPTION_STATUS_COMPLETED = "completed"
REDEMPTION_STATUS_EXPIRED = "expired"

DATA_CHALLENGE_ID = "id"
DATA_CHALLENGE_TITLE = "title"
DATA_CHALLENGE_DESCRIPTION = "description"
DATA_CHALLENGE_DIFFICULTY = "difficulty"
DATA_CHALLENGE_TYPE = "type"

URGENCY_CRITICAL = "critical"
URGENCY_HIGH = "high"
URGENCY_MEDIUM = "medium"
URGENCY_LOW = "low"


# ------------------------------------------------------------------------------------------------
# Challenge Validations
# ------------------------------------------------------------------------------------------------
DATA_VALIDATION_ID = "id"
DATA_VALIDATION_STATUS = "status"
DATA_VALIDATION_CREATED_AT = "created_at"
DATA_VALIDATION_EXPIRES_AT = "expires_at"
DATA_VALIDATION_REVIEWED_AT = "reviewed_at"
DATA_VALIDATION_REVIEWER_NOTES = "reviewer_notes"
DATA_VALIDATION_AI_RESULT = "ai_result"
DATA_AI_RESULT_IS_VALID = "is_valid"
DATA_AI_RESULT_CONFIDENCE_SCORE = "confidence_score"
DATA_AI_RESULT_REASONING = "reasoning"

VALIDATION_STATUS_PENDING_REVIEW = "pending_review"
VALIDATION_STATUS_APPROVED_MANUAL = "approved_manual"
VALIDATION_STATUS_APPROVED_AI = "approved_ai"
VALIDATION_STATUS_REJECTED_MANUAL = "rejected_manual"
VALIDATION_STATUS_REJECTED_AI = "rejected_ai"

VALIDATION_APPROVED_STATUSES = frozenset(
    {VALIDATION_STATUS_APPROVED_MANUAL, VALIDATION_STATUS_APPROVED_AI}
)
VALIDATION_REJECTED_STATUSES = frozenset(
    {VALIDATION_STATUS_REJECTED_MANUAL, VALIDATION_STATUS_REJECTED_AI}
)

# Workflow states
WORKFLOW_STATE_IDLE = "idle"
WORKFLOW_STATE_CHECKING = "checking"
WORKFLOW_STATE_PENDING_REVIEW = "pending_review"
WORKFLOW_STATE_APPROVED = "approved"
WORKFLOW_STATE_REJECTED = "rejected"

# Snapshot kinds
SNAPSHOT_UNKNOWN = "unknown"
SNAPSHOT_OPTIMISTIC = "optimistic"
SNAPSHOT_CONFIRMED = "confirmed"

DEFAULT_REJECTION_REASON = "The proof does not meet the challenge requirements."


# ------------------------------------------------------------------------------------------------
# User / Habits / Completions
# ------------------------------------------------------------------------------------------------
DATA_USER = "user"
DATA_HABITS = "habits"
DATA_COMPLETIONS = "completions"
DATA_LIFE_CHALLENGES = "life_challenges"

DATA_USER_ID = "id"
DATA_USER_USERNAME = "username"
DATA_USER_NAME = "name"
DATA_USER_EMAIL = "email"
DATA_USER_LIVES = "lives"
DATA_USER_MAX_LIVES = "max_lives"
DATA_USER_XP = "xp"

DATA_HABIT_ID = "id"
DATA_HABIT_NAME = "name"
DATA_HABIT_START_DATE = "start_date"
DATA_HABIT_TARGET_DATE = "target_date"
DATA_HABIT_CURRENT_STREAK = "current_streak"
DATA_HABIT_PROGRESS_TYPE = "progress_type"
DATA_HABIT_ACTIVE_BY_USER = "active_by_user"
DATA_HABIT_IS_BLOCKED = "is_blocked"

DATA_COMPLETION_ID = "id"
DATA_COMPLETION_HABIT_ID = "habit_id"
DATA_COMPLETION_DATE = "date"
DATA_COMPLETION_COMPLETED = "completed"
DATA_COMPLETION_PROGRESS_TYPE = "progress_type"
DATA_COMPLETION_PROGRESS_VALUE = "progress_value"
DATA_COMPLETION_TARGET_VALUE = "target_value"
DATA_COMPLETION_NOTES = "notes"
DATA_COMPLETION_CREATED_AT = "created_at"
DATA_COMPLETION_COMPLETED_AT = "completed_at"

PROGRESS_TYPE_YES_NO = "yes_no"
PROGRESS_TYPE_TIME = "time"
PROGRESS_TYPE_COUNT = "count"


# ------------------------------------------------------------------------------------------------
# Life Challenges
# ------------------------------------------------------------------------------------------------
DATA_LIFE_CHALLENGE_ID = "life_challenge_id"
DATA_LIFE_CHALLENGE_TITLE = "title"
DATA_LIFE_CHALLENGE_DESCRIPTION = "description"
DATA_LIFE_CHALLENGE_REWARD = "reward"
DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE = "redeemable_type"
DATA_LIFE_CHALLENGE_ICON = "icon"
DATA_LIFE_CHALLENGE_STATUS = "status"
DATA_LIFE_CHALLENGE_OBTAINED_AT = "obtained_at"
DATA_LIFE_CHALLENGE_REDEEMED_AT = "redeemed_at"
DATA_LIFE_CHALLENGE_CAN_REDEEM = "can_redeem"
DATA_LIFE_CHALLENGE_VERIFICATION = "verification_function"

# Local redemption ledger (persisted)
DATA_LEDGER_REDEEMED = "redeemed_life_challenges"
DATA_LEDGER_COUNT = "count"
DATA_LEDGER_LAST_REDEEMED_AT = "last_redeemed_at"

REDEEMABLE_ONCE = "once"
REDEEMABLE_UNLIMITED = "unlimited"

LIFE_CHALLENGE_STATUS_PENDING = "pending"
LIFE_CHALLENGE_STATUS_OBTAINED = "obtained"
LIFE_CHALLENGE_STATUS_REDEEMED = "redeemed"

REWARD_OUTCOME_FULL = "full"
REWARD_OUTCOME_PARTIAL = "partial"
REWARD_OUTCOME_NONE = "none"

LIFE_CHALLENGE_WEEK_NO_LIVES = "challenge_week_no_lives"
LIFE_CHALLENGE_MONTH_NO_LIVES = "challenge_month_no_lives"
LIFE_CHALLENGE_LAST_HOUR_SAVE = "challenge_last_hour_save"
LIFE_CHALLENGE_EARLY_BIRD = "challenge_early_bird"
LIFE_CHALLENGE_THREE_WEEK = "challenge_three_week"
LIFE_CHALLENGE_TARGET_DATE = "challenge_target_date"
LIFE_CHALLENGE_FIVE_ONCE = "challenge_five_once"
LIFE_CHALLENGE_TWO_MONTHS_ALIVE = "challenge_two_months_alive"
LIFE_CHALLENGE_1000_HOURS = "challenge_1000_hours"
LIFE_CHALLENGE_200_NOTES = "challenge_200_notes"

VERIFY_WEEK_WITHOUT_LOSING_LIVES = "verifyWeekWithoutLosingLives"
VERIFY_MONTH_WITHOUT_LOSING_LIVES = "verifyMonthWithoutLosingLives"
VERIFY_LAST_HOUR_SAVE = "verifyLastHourSave"
VERIFY_EARLY_BIRD = "verifyEarlyBird"
VERIFY_THREE_HABITS_WEEK = "verifyThreeHabitsWeek"
VERIFY_TARGET_DATE_REACHED = "verifyTargetDateReached"
VERIFY_FIVE_ONCE_CHALLENGES = "verifyFiveOnceChallenges"
VERIFY_TWO_MONTHS_ALIVE = "verifyTwoMonthsAlive"
VERIFY_1000_HOURS = "verify1000Hours"
VERIFY_200_NOTES = "verify200Notes"

# Predicate thresholds
STREAK_WEEK_DAYS = 7
STREAK_MONTH_DAYS = 30
THREE_HABITS_REQUIRED = 3
TARGET_DATE_MIN_MONTHS = 4
DAYS_PER_MONTH_APPROX = 30
HOURS_THRESHOLD = 1000
NOTES_THRESHOLD = 200
ONCE_CHALLENGES_THRESHOLD = 5
LAST_HOUR_START = 23
EARLY_BIRD_END_HOUR = 1

LIFE_CHALLENGE_DEFINITIONS: list[dict[str, object]] = [
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_WEEK_NO_LIVES,
        DATA_LIFE_CHALLENGE_TITLE: "Perfect Week",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Keep a habit for a full week without losing lives",
        DATA_LIFE_CHALLENGE_REWARD: 1,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_ONCE,
        DATA_LIFE_CHALLENGE_ICON: "🌟",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_WEEK_WITHOUT_LOSING_LIVES,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_MONTH_NO_LIVES,
        DATA_LIFE_CHALLENGE_TITLE: "Unstoppable Month",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Keep a habit for a full month without losing lives",
        DATA_LIFE_CHALLENGE_REWARD: 2,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_UNLIMITED,
        DATA_LIFE_CHALLENGE_ICON: "🏆",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_MONTH_WITHOUT_LOSING_LIVES,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_LAST_HOUR_SAVE,
        DATA_LIFE_CHALLENGE_TITLE: "Last Minute Save",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Complete a habit with less than 1 hour left in the day",
        DATA_LIFE_CHALLENGE_REWARD: 1,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_ONCE,
        DATA_LIFE_CHALLENGE_ICON: "⏰",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_LAST_HOUR_SAVE,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_EARLY_BIRD,
        DATA_LIFE_CHALLENGE_TITLE: "Early Bird",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Log progress on a habit before 1 AM",
        DATA_LIFE_CHALLENGE_REWARD: 1,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_ONCE,
        DATA_LIFE_CHALLENGE_ICON: "🌅",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_EARLY_BIRD,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_THREE_WEEK,
        DATA_LIFE_CHALLENGE_TITLE: "Triple Crown",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Complete at least 3 habits for a full week without missing",
        DATA_LIFE_CHALLENGE_REWARD: 2,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_ONCE,
        DATA_LIFE_CHALLENGE_ICON: "👑",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_THREE_HABITS_WEEK,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_TARGET_DATE,
        DATA_LIFE_CHALLENGE_TITLE: "Goal Reached",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Reach a habit's target date (minimum 4 months)",
        DATA_LIFE_CHALLENGE_REWARD: 3,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_UNLIMITED,
        DATA_LIFE_CHALLENGE_ICON: "🎯",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_TARGET_DATE_REACHED,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_FIVE_ONCE,
        DATA_LIFE_CHALLENGE_TITLE: "Achievement Collector",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Redeem 5 once-only life challenges",
        DATA_LIFE_CHALLENGE_REWARD: 2,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_ONCE,
        DATA_LIFE_CHALLENGE_ICON: "🏅",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_FIVE_ONCE_CHALLENGES,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_TWO_MONTHS_ALIVE,
        DATA_LIFE_CHALLENGE_TITLE: "Survivor",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Do not run out of lives for 2 months in a row",
        DATA_LIFE_CHALLENGE_REWARD: 2,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_UNLIMITED,
        DATA_LIFE_CHALLENGE_ICON: "💪",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_TWO_MONTHS_ALIVE,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_1000_HOURS,
        DATA_LIFE_CHALLENGE_TITLE: "Time Master",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Accumulate 1000 hours on a single habit",
        DATA_LIFE_CHALLENGE_REWARD: 3,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_UNLIMITED,
        DATA_LIFE_CHALLENGE_ICON: "⏳",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_1000_HOURS,
    },
    {
        DATA_LIFE_CHALLENGE_ID: LIFE_CHALLENGE_200_NOTES,
        DATA_LIFE_CHALLENGE_TITLE: "Prolific Writer",
        DATA_LIFE_CHALLENGE_DESCRIPTION: "Write 200 notes across all your habits",
        DATA_LIFE_CHALLENGE_REWARD: 2,
        DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: REDEEMABLE_ONCE,
        DATA_LIFE_CHALLENGE_ICON: "📝",
        DATA_LIFE_CHALLENGE_VERIFICATION: VERIFY_200_NOTES,
    },
]


# ------------------------------------------------------------------------------------------------
# Signals (instance-scoped dispatcher suffixes) and Bus Events
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_REDEMPTIONS_UPDATED = "redemptions_updated"
SIGNAL_SUFFIX_USER_DEPLETED = "user_depleted"
SIGNAL_SUFFIX_VALIDATION_UPDATED = "validation_updated"
SIGNAL_SUFFIX_LIFE_CHALLENGE_REDEEMED = "life_challenge_redeemed"

EVENT_USER_DEPLETED = f"{DOMAIN}_user_depleted"
EVENT_VALIDATION_APPROVED = f"{DOMAIN}_validation_approved"
EVENT_VALIDATION_REJECTED = f"{DOMAIN}_validation_rejected"
EVENT_LIFE_CHALLENGE_REDEEMED = f"{DOMAIN}_life_challenge_redeemed"


# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_REFRESH_REDEMPTIONS = "refresh_redemptions"
SERVICE_ACCEPT_PENALTY = "accept_penalty"
SERVICE_CHOOSE_CHALLENGE = "choose_challenge"
SERVICE_SUBMIT_PROOF = "submit_proof"
SERVICE_CHECK_VALIDATION_STATUS = "check_validation_status"
SERVICE_RESET_VALIDATION = "reset_validation"
SERVICE_REDEEM_LIFE_CHALLENGE = "redeem_life_challenge"

FIELD_CONFIG_ENTRY_ID = "config_entry_id"
FIELD_REDEMPTION_ID = "redemption_id"
FIELD_CHALLENGE_ID = "challenge_id"
FIELD_PROOF_TEXT = "proof_text"
FIELD_PROOF_IMAGE_URLS = "proof_image_urls"
FIELD_LIFE_CHALLENGE_ID = "life_challenge_id"
FIELD_CONFIRM_PARTIAL = "confirm_partial"

# Service / action result keys
RESULT_CURRENT_LIVES = "current_lives"
RESULT_USER_DEPLETED = "user_depleted"
RESULT_MESSAGE = "message"
RESULT_VALIDATION_ID = "validation_id"
RESULT_STATE = "state"
RESULT_LIVES_GAINED = "lives_gained"
RESULT_NOMINAL_REWARD = "nominal_reward"
RESULT_SHORTFALL = "shortfall"
RESULT_OUTCOME = "outcome"
RESULT_HABIT_STILL_BLOCKED = "habit_still_blocked"
RESULT_REDEMPTIONS = "redemptions"


# ------------------------------------------------------------------------------------------------
# Sensors / Attributes / Translation Keys
# ------------------------------------------------------------------------------------------------
SENSOR_KEY_LIVES = "lives"
SENSOR_KEY_PENDING_REDEMPTIONS = "pending_redemptions"
SENSOR_KEY_MOST_URGENT_REDEMPTION = "most_urgent_redemption"
SENSOR_KEY_VALIDATION_STATUS = "validation_status"
SENSOR_KEY_REDEEMABLE_LIFE_CHALLENGES = "redeemable_life_challenges"

TRANS_KEY_SENSOR_LIVES = "lives"
TRANS_KEY_SENSOR_PENDING_REDEMPTIONS = "pending_redemptions"
TRANS_KEY_SENSOR_MOST_URGENT_REDEMPTION = "most_urgent_redemption"
TRANS_KEY_SENSOR_VALIDATION_STATUS = "validation_status"
TRANS_KEY_SENSOR_REDEEMABLE_LIFE_CHALLENGES = "redeemable_life_challenges"

ATTR_MAX_LIVES = "max_lives"
ATTR_XP = "xp"
ATTR_USERNAME = "username"
ATTR_REDEMPTIONS = "redemptions"
ATTR_URGENT_COUNT = "urgent_count"
ATTR_TIME_REMAINING = "time_remaining"
ATTR_URGENCY = "urgency"
ATTR_LOADING = "loading"
ATTR_ERROR = "error"
ATTR_REDEMPTION_ID = "redemption_id"
ATTR_HABIT_NAME = "habit_name"
ATTR_STATUS = "status"
ATTR_CHALLENGE_TITLE = "challenge_title"
ATTR_VALIDATION_ID = "validation_id"
ATTR_VALIDATION_STATUS = "validation_status"
ATTR_SNAPSHOT_KIND = "snapshot_kind"
ATTR_REVIEW_TIME_LEFT = "review_time_left"
ATTR_REJECTION_REASON = "rejection_reason"
ATTR_CAN_RETRY = "can_retry"
ATTR_LIFE_CHALLENGES = "life_challenges"
ATTR_REDEEMABLE = "redeemable"

SENSOR_ICON_LIVES = "mdi:heart"
SENSOR_ICON_PENDING_REDEMPTIONS = "mdi:heart-broken"
SENSOR_ICON_MOST_URGENT = "mdi:timer-sand"
SENSOR_ICON_VALIDATION = "mdi:clipboard-check-outline"
SENSOR_ICON_LIFE_CHALLENGES = "mdi:trophy-outline"

DIAG_KEY_ENTRY = "entry"
DIAG_KEY_DATA = "data"
DIAG_KEY_REDEMPTIONS = "redemptions"
DIAG_KEY_VALIDATIONS = "validations"
DIAG_KEY_LIFE_CHALLENGES = "life_challenges"
DIAG_KEY_LEDGER = "ledger"

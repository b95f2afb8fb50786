"""Manager modules for HabitRush integration.

Managers own state, timers and side effects; they delegate decisions to the
pure engines:
- RedemptionManager: pending-redemption store, countdown and list polling
- ValidationManager / ValidationWorkflow: per-redemption proof validation
- LifeChallengeManager: life-challenge snapshots and redemption
"""

from .base_manager import BaseManager
from .life_challenge_manager import (
    LifeChallengeManager,
    LifeChallengeNotRedeemableError,
    LifeSlotsFullError,
    PartialRewardNotConfirmedError,
)
from .redemption_manager import RedemptionManager
from .validation_manager import (
    ValidationCallbacks,
    ValidationManager,
    ValidationWorkflow,
)

__all__ = [
    "BaseManager",
    "LifeChallengeManager",
    "LifeChallengeNotRedeemableError",
    "LifeSlotsFullError",
    "PartialRewardNotConfirmedError",
    "RedemptionManager",
    "ValidationCallbacks",
    "ValidationManager",
    "ValidationWorkflow",
]

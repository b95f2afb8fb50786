"""Engine modules for HabitRush integration.

Contains pure computation engines:
- redemption_engine: Pending-redemption lifecycle, countdown and derived views
- validation_engine: Proof-validation state machine and proof checks
- life_challenge_engine: Life-challenge predicates and reward capping
"""

# Use relative imports within package to avoid mypy module resolution issues
from .life_challenge_engine import LifeChallengeEngine, RewardPlan
from .redemption_engine import InvalidTransitionError, RedemptionEngine
from .validation_engine import (
    ProofValidationError,
    ValidationEngine,
    ValidationSnapshot,
)

__all__ = [
    "InvalidTransitionError",
    "LifeChallengeEngine",
    "ProofValidationError",
    "RedemptionEngine",
    "RewardPlan",
    "ValidationEngine",
    "ValidationSnapshot",
]

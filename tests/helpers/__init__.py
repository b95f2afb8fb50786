"""Test helpers for HabitRush integration tests.

This module re-exports all helpers for convenient imports:

    from tests.helpers import (
        # Setup
        setup_scenario, setup_from_yaml, SetupResult,

        # Payloads
        make_user, make_habit, make_completion, make_redemption,
        make_validation, make_status_response, HOUR_MS,

        # Validation
        get_sensor_entity_id, assert_state_equals,
    )

See individual modules for full documentation:
- setup.py: Integration setup against a mocked API client
- payloads.py: Server payload builders
- validation.py: Entity lookup and state assertions
"""

from tests.helpers.payloads import (
    HOUR_MS,
    MINUTE_MS,
    SECOND_MS,
    make_assigned_redemption,
    make_challenge,
    make_completion,
    make_habit,
    make_redemption,
    make_status_response,
    make_streak,
    make_submit_response,
    make_user,
    make_validation,
)
from tests.helpers.setup import (
    SetupResult,
    configure_api,
    load_scenario_yaml,
    setup_from_yaml,
    setup_scenario,
    unload_scenario,
)
from tests.helpers.validation import (
    assert_attribute_equals,
    assert_state_equals,
    get_sensor_entity_id,
)

__all__ = [
    "HOUR_MS",
    "MINUTE_MS",
    "SECOND_MS",
    "SetupResult",
    "assert_attribute_equals",
    "assert_state_equals",
    "configure_api",
    "get_sensor_entity_id",
    "load_scenario_yaml",
    "make_assigned_redemption",
    "make_challenge",
    "make_completion",
    "make_habit",
    "make_redemption",
    "make_status_response",
    "make_streak",
    "make_submit_response",
    "make_user",
    "make_validation",
    "setup_from_yaml",
    "setup_scenario",
    "unload_scenario",
]

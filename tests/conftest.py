"""Shared fixtures for HabitRush tests."""

from collections.abc import AsyncGenerator, Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.habitrush.const import (
    CONF_API_TOKEN,
    CONF_BASE_URL,
    CONF_REDEMPTION_POLL_INTERVAL,
    CONF_UPDATE_INTERVAL,
    CONF_VALIDATION_POLL_INTERVAL,
    DEFAULT_REDEMPTION_POLL_INTERVAL,
    DEFAULT_UPDATE_INTERVAL,
    DEFAULT_VALIDATION_POLL_INTERVAL,
    DOMAIN,
)
from tests.helpers.setup import (
    SetupResult,
    configure_api,
    setup_scenario,
    unload_scenario,
)

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="runner",
        data={
            CONF_BASE_URL: "http://habitrush.test/api",
            CONF_API_TOKEN: "test-token",
        },
        options={
            CONF_UPDATE_INTERVAL: DEFAULT_UPDATE_INTERVAL,
            CONF_REDEMPTION_POLL_INTERVAL: DEFAULT_REDEMPTION_POLL_INTERVAL,
            CONF_VALIDATION_POLL_INTERVAL: DEFAULT_VALIDATION_POLL_INTERVAL,
        },
        entry_id="test_entry_id",
        unique_id="user-1",
    )


@pytest.fixture
def mock_api() -> Generator[MagicMock]:
    """Replace the HTTP client used by the integration with an autospec mock.

    Every async endpoint becomes an AsyncMock; read endpoints default to an
    account with no habits, no redemptions and no validation.
    """
    with patch(
        "custom_components.habitrush.HabitRushApiClient", autospec=True
    ) as client_cls:
        api = client_cls.return_value
        configure_api(api, {})
        yield api


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
    mock_api: MagicMock,  # pylint: disable=redefined-outer-name
) -> AsyncGenerator[SetupResult]:
    """Set up the HabitRush integration with an empty account.

    The entry is unloaded afterwards so no timer outlives the test.
    """
    result = await setup_scenario(hass, mock_config_entry, mock_api)
    yield result
    await unload_scenario(hass, result)

"""Tests for the HabitRush HTTP client and error-code mapping."""

import aiohttp
from homeassistant.core import HomeAssistant
import pytest

from custom_components.habitrush import const
from custom_components.habitrush.api import (
    HabitRushApiClient,
    HabitRushApiError,
    HabitRushAuthError,
    get_error_message,
)
from pytest_homeassistant_custom_component.test_util.aiohttp import (
    AiohttpClientMocker,
)
from tests.helpers import make_challenge, make_redemption

BASE_URL = "http://habitrush.test/api"


@pytest.fixture
def client(hass: HomeAssistant) -> HabitRushApiClient:
    """Client pointed at the mocked server."""
    return HabitRushApiClient(hass, f"{BASE_URL}/", "test-token")


# ============================================================================
# Successful requests
# ============================================================================


class TestRequests:
    """Tests for request building and response decoding."""

    async def test_pending_redemptions_with_bearer_token(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.get(
            f"{BASE_URL}/pending-redemptions",
            json={"success": True, "pending_redemptions": [make_redemption("r1")]},
        )

        redemptions = await client.async_get_pending_redemptions()

        assert [r["id"] for r in redemptions] == ["r1"]
        _, _, _, headers = aioclient_mock.mock_calls[0]
        assert headers["Authorization"] == "Bearer test-token"

    async def test_trailing_slash_is_stripped(self, client: HabitRushApiClient) -> None:
        assert client.base_url == BASE_URL

    async def test_redeem_challenge_sends_challenge_id(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.post(
            f"{BASE_URL}/pending-redemptions/r1/redeem-challenge",
            json={"success": True, "challenge": make_challenge("ch-2")},
        )

        result = await client.async_redeem_challenge("r1", "ch-2")

        assert result["challenge"]["id"] == "ch-2"
        method, url, data, _ = aioclient_mock.mock_calls[0]
        assert method == "POST"
        assert url.path == "/api/pending-redemptions/r1/redeem-challenge"
        assert data == {"challenge_id": "ch-2"}

    async def test_submit_proof_body(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.post(
            f"{BASE_URL}/pending-redemptions/r2/complete-challenge",
            json={"success": True, "validation_id": "v1", "status": "pending_review"},
        )

        result = await client.async_submit_challenge_proof(
            "r2", "twenty push-ups done in the garden", ["https://img/1.jpg"]
        )

        assert result["validation_id"] == "v1"
        assert aioclient_mock.mock_calls[0][2] == {
            "proof_text": "twenty push-ups done in the garden",
            "proof_image_urls": ["https://img/1.jpg"],
        }

    async def test_life_challenges_request_status(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.get(f"{BASE_URL}/life-challenges", json=[])

        assert await client.async_get_life_challenges() == []
        _, url, _, _ = aioclient_mock.mock_calls[0]
        assert url.query["withStatus"] == "true"

    async def test_unexpected_redemption_payload(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.get(f"{BASE_URL}/pending-redemptions", json=["oops"])

        with pytest.raises(HabitRushApiError) as err:
            await client.async_get_pending_redemptions()
        assert err.value.error_code == const.ERROR_UNKNOWN


# ============================================================================
# Error mapping
# ============================================================================


class TestErrors:
    """Tests for turning failures into HabitRushApiError."""

    async def test_validation_pending_carries_validation_id(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.post(
            f"{BASE_URL}/pending-redemptions/r2/complete-challenge",
            status=409,
            json={
                "success": False,
                "error_code": "VALIDATION_PENDING",
                "message": "pending",
                "validation_id": "v9",
            },
        )

        with pytest.raises(HabitRushApiError) as err:
            await client.async_submit_challenge_proof("r2", "x" * 30, ["a"])

        assert err.value.error_code == const.ERROR_VALIDATION_PENDING
        assert err.value.validation_id == "v9"
        assert err.value.status == 409
        assert str(err.value) == const.ERROR_MESSAGES[const.ERROR_VALIDATION_PENDING]
        assert not err.value.is_terminal

    async def test_unauthorized(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.get(f"{BASE_URL}/users/me", status=401, json={})

        with pytest.raises(HabitRushAuthError) as err:
            await client.async_get_user_profile()
        assert err.value.error_code == const.ERROR_UNAUTHORIZED

    async def test_unknown_code_uses_server_message(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.post(
            f"{BASE_URL}/pending-redemptions/r1/redeem-life",
            status=400,
            json={"error_code": "SOMETHING_NEW", "message": "Server says no"},
        )

        with pytest.raises(HabitRushApiError) as err:
            await client.async_redeem_life("r1")
        assert err.value.error_code == "SOMETHING_NEW"
        assert str(err.value) == "Server says no"

    async def test_error_without_json_body(
        self, client: HabitRushApiClient, aioclient_mock: AiohttpClientMocker
    ) -> None:
        aioclient_mock.get(f"{BASE_URL}/habits", status=500, text="Bad gateway")

        with pytest.raises(HabitRushApiError) as err:
            await client.async_get_habits()
        assert err.value.error_code == const.ERROR_UNKNOWN
        assert str(err.value) == const.ERROR_MESSAGE_GENERIC

    @pytest.mark.parametrize("exc", [aiohttp.ClientError(), TimeoutError()])
    async def test_transport_failures_are_network_errors(
        self,
        client: HabitRushApiClient,
        aioclient_mock: AiohttpClientMocker,
        exc: Exception,
    ) -> None:
        aioclient_mock.get(f"{BASE_URL}/pending-redemptions", exc=exc)

        with pytest.raises(HabitRushApiError) as err:
            await client.async_get_pending_redemptions()
        assert err.value.error_code == const.ERROR_NETWORK
        assert err.value.status is None


class TestErrorHelpers:
    """Tests for is_terminal and get_error_message."""

    @pytest.mark.parametrize(
        ("code", "terminal"),
        [
            ("MAX_RETRIES_EXCEEDED", True),
            ("REDEMPTION_TIME_EXPIRED", True),
            ("REDEMPTION_EXPIRED", True),
            ("VALIDATION_PENDING", False),
            ("NETWORK_ERROR", False),
        ],
    )
    def test_is_terminal(self, code: str, terminal: bool) -> None:
        assert HabitRushApiError(code).is_terminal is terminal

    def test_known_code_ignores_server_message(self) -> None:
        assert (
            get_error_message("IMAGE_TOO_LARGE", "413")
            == const.ERROR_MESSAGES[const.ERROR_IMAGE_TOO_LARGE]
        )

    def test_fallbacks(self) -> None:
        assert get_error_message("NEW_CODE", "From server") == "From server"
        assert get_error_message(None) == const.ERROR_MESSAGE_GENERIC

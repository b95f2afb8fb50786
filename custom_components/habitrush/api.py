# File: api.py
"""HTTP client for the HabitRush server.

All network traffic of the integration goes through HabitRushApiClient. It uses
Home Assistant's shared aiohttp session, a bearer token, and a fixed request
timeout. Non-2xx responses are turned into HabitRushApiError carrying the
server's machine-readable error code, so callers can branch on codes such as
VALIDATION_PENDING without parsing messages.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import aiohttp
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import (
        CompletionData,
        HabitData,
        LifeChallengeServerStatus,
        PendingRedemptionData,
        RedeemChallengeResponse,
        RedeemLifeChallengeResponse,
        RedeemLifeResponse,
        SubmitProofResponse,
        UserProfileData,
        ValidationStatusResponse,
    )


def get_error_message(error_code: str | None, server_message: str | None = None) -> str:
    """Map an error code to user-facing text.

    Known codes use the fixed table; unknown codes fall back to the server's
    message, then to a generic text.
    """
    if error_code and error_code in const.ERROR_MESSAGES:
        return const.ERROR_MESSAGES[error_code]
    return server_message or const.ERROR_MESSAGE_GENERIC


class HabitRushApiError(HomeAssistantError):
    """Raised when a HabitRush request fails.

    Attributes:
        error_code: Server error code (or NETWORK_ERROR / UNKNOWN_ERROR)
        status: HTTP status, None for transport failures
        validation_id: Open validation id reported with VALIDATION_PENDING
        details: Raw error payload
    """

    def __init__(
        self,
        error_code: str,
        message: str | None = None,
        *,
        status: int | None = None,
        validation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.error_code = error_code
        self.status = status
        self.validation_id = validation_id
        self.details = details or {}
        super().__init__(message or get_error_message(error_code))

    @property
    def is_terminal(self) -> bool:
        """True when no retry should be offered (retries exhausted, window over)."""
        return self.error_code in const.TERMINAL_ERROR_CODES

    @classmethod
    def from_response(cls, status: int, payload: Any) -> HabitRushApiError:
        """Build the error from an HTTP error response body."""
        body: dict[str, Any] = payload if isinstance(payload, dict) else {}
        if status in (401, 403):
            error_cls: type[HabitRushApiError] = HabitRushAuthError
            error_code = body.get(const.API_FIELD_ERROR_CODE) or const.ERROR_UNAUTHORIZED
        else:
            error_cls = cls
            error_code = body.get(const.API_FIELD_ERROR_CODE) or const.ERROR_UNKNOWN
        return error_cls(
            error_code,
            get_error_message(error_code, body.get(const.API_FIELD_MESSAGE)),
            status=status,
            validation_id=body.get(const.API_FIELD_VALIDATION_ID),
            details=body,
        )


class HabitRushAuthError(HabitRushApiError):
    """Raised when the token is rejected (HTTP 401/403)."""


class HabitRushApiClient:
    """Thin async wrapper over the HabitRush REST API."""

    def __init__(
        self,
        hass: HomeAssistant,
        base_url: str,
        api_token: str,
        timeout: float = const.DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            hass: Home Assistant instance (provides the shared session)
            base_url: API root, e.g. "https://habitrush.example/api"
            api_token: Bearer token
            timeout: Per-request timeout in seconds
        """
        self.hass = hass
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        """API root without trailing slash."""
        return self._base_url

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Perform a request and return the decoded JSON body.

        Raises:
            HabitRushAuthError: On 401/403 without a more specific error code.
            HabitRushApiError: On any other non-2xx status, timeout, or
                transport failure.
        """
        session = async_get_clientsession(self.hass)
        url = f"{self._base_url}{path}"
        headers = {
            const.HTTP_HEADER_AUTHORIZATION: f"{const.HTTP_BEARER_PREFIX}{self._api_token}"
        }

        const.LOGGER.debug("DEBUG: HabitRush API %s %s", method, path)
        try:
            async with asyncio.timeout(self._timeout):
                async with session.request(
                    method, url, json=json_body, params=params, headers=headers
                ) as response:
                    status = response.status
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError:
                        payload = None
        except TimeoutError as err:
            raise HabitRushApiError(
                const.ERROR_NETWORK, f"Timeout calling {method} {path}"
            ) from err
        except aiohttp.ClientError as err:
            raise HabitRushApiError(
                const.ERROR_NETWORK, f"Error calling {method} {path}: {err}"
            ) from err

        if status >= 400:
            error = HabitRushApiError.from_response(status, payload)
            const.LOGGER.debug(
                "DEBUG: HabitRush API %s %s failed: status=%s code=%s",
                method,
                path,
                status,
                error.error_code,
            )
            raise error

        return payload

    # -------------------------------------------------------------------------------------
    # Pending redemptions
    # -------------------------------------------------------------------------------------

    async def async_get_pending_redemptions(self) -> list[PendingRedemptionData]:
        """GET /pending-redemptions."""
        payload = await self._request("GET", const.API_PATH_PENDING_REDEMPTIONS)
        if not isinstance(payload, dict):
            raise HabitRushApiError(
                const.ERROR_UNKNOWN, "Unexpected pending redemptions response shape"
            )
        return list(payload.get(const.API_FIELD_PENDING_REDEMPTIONS) or [])

    async def async_redeem_life(self, redemption_id: str) -> RedeemLifeResponse:
        """POST /pending-redemptions/{id}/redeem-life (accept the penalty)."""
        return await self._request(
            "POST", const.API_PATH_REDEEM_LIFE.format(redemption_id=redemption_id)
        )

    async def async_redeem_challenge(
        self, redemption_id: str, challenge_id: str
    ) -> RedeemChallengeResponse:
        """POST /pending-redemptions/{id}/redeem-challenge."""
        return await self._request(
            "POST",
            const.API_PATH_REDEEM_CHALLENGE.format(redemption_id=redemption_id),
            json_body={const.API_FIELD_CHALLENGE_ID: challenge_id},
        )

    async def async_submit_challenge_proof(
        self, redemption_id: str, proof_text: str, proof_image_urls: list[str]
    ) -> SubmitProofResponse:
        """POST /pending-redemptions/{id}/complete-challenge."""
        return await self._request(
            "POST",
            const.API_PATH_COMPLETE_CHALLENGE.format(redemption_id=redemption_id),
            json_body={
                const.API_FIELD_PROOF_TEXT: proof_text,
                const.API_FIELD_PROOF_IMAGE_URLS: proof_image_urls,
            },
        )

    async def async_get_validation_status(
        self, redemption_id: str
    ) -> ValidationStatusResponse:
        """GET /pending-redemptions/{id}/validation-status."""
        return await self._request(
            "GET",
            const.API_PATH_VALIDATION_STATUS.format(redemption_id=redemption_id),
        )

    # -------------------------------------------------------------------------------------
    # User, habits, completions
    # -------------------------------------------------------------------------------------

    async def async_get_user_profile(self) -> UserProfileData:
        """GET /users/me."""
        return await self._request("GET", const.API_PATH_USER_PROFILE)

    async def async_get_habits(self) -> list[HabitData]:
        """GET /habits."""
        return list(await self._request("GET", const.API_PATH_HABITS) or [])

    async def async_get_habit_completions(self, habit_id: str) -> list[CompletionData]:
        """GET /habits/{id}/completions."""
        return list(
            await self._request(
                "GET", const.API_PATH_HABIT_COMPLETIONS.format(habit_id=habit_id)
            )
            or []
        )

    # -------------------------------------------------------------------------------------
    # Life challenges
    # -------------------------------------------------------------------------------------

    async def async_get_life_challenges(self) -> list[LifeChallengeServerStatus]:
        """GET /life-challenges?withStatus=true."""
        return list(
            await self._request(
                "GET",
                const.API_PATH_LIFE_CHALLENGES,
                params={const.API_PARAM_WITH_STATUS: "true"},
            )
            or []
        )

    async def async_redeem_life_challenge(
        self, life_challenge_id: str
    ) -> RedeemLifeChallengeResponse:
        """POST /life-challenges/{id}/redeem."""
        return await self._request(
            "POST",
            const.API_PATH_REDEEM_LIFE_CHALLENGE.format(
                life_challenge_id=life_challenge_id
            ),
        )

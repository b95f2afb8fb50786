# File: services.py
"""Defines custom services for the HabitRush integration.

These services expose the redemption, validation and life-challenge actions to
scripts and automations. Every action service can return its result when
called with `return_response`.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv

from . import const
from .coordinator import HabitRushDataCoordinator
from .engines.validation_engine import ProofValidationError
from .helpers.entity_helpers import get_coordinator
from .managers import PartialRewardNotConfirmedError

# --- Service Schemas ---
ENTRY_SCHEMA = {vol.Optional(const.FIELD_CONFIG_ENTRY_ID): cv.string}

REFRESH_REDEMPTIONS_SCHEMA = vol.Schema(ENTRY_SCHEMA)

REDEMPTION_SCHEMA = vol.Schema(
    {
        **ENTRY_SCHEMA,
        vol.Required(const.FIELD_REDEMPTION_ID): cv.string,
    }
)

CHOOSE_CHALLENGE_SCHEMA = vol.Schema(
    {
        **ENTRY_SCHEMA,
        vol.Required(const.FIELD_REDEMPTION_ID): cv.string,
        vol.Required(const.FIELD_CHALLENGE_ID): cv.string,
    }
)

SUBMIT_PROOF_SCHEMA = vol.Schema(
    {
        **ENTRY_SCHEMA,
        vol.Required(const.FIELD_REDEMPTION_ID): cv.string,
        vol.Required(const.FIELD_PROOF_TEXT): cv.string,
        vol.Required(const.FIELD_PROOF_IMAGE_URLS): vol.All(
            cv.ensure_list, [cv.string]
        ),
    }
)

REDEEM_LIFE_CHALLENGE_SCHEMA = vol.Schema(
    {
        **ENTRY_SCHEMA,
        vol.Required(const.FIELD_LIFE_CHALLENGE_ID): cv.string,
        vol.Optional(const.FIELD_CONFIRM_PARTIAL, default=False): cv.boolean,
    }
)


def _coordinator_for_call(
    hass: HomeAssistant, call: ServiceCall
) -> HabitRushDataCoordinator:
    return get_coordinator(hass, call.data.get(const.FIELD_CONFIG_ENTRY_ID))


def async_setup_services(hass: HomeAssistant) -> None:
    """Register HabitRush services."""
    if hass.services.has_service(const.DOMAIN, const.SERVICE_REFRESH_REDEMPTIONS):
        return

    async def handle_refresh_redemptions(call: ServiceCall) -> ServiceResponse:
        """Handle a user-initiated refresh of the pending redemption list."""
        coordinator = _coordinator_for_call(hass, call)
        manager = coordinator.redemption_manager
        await manager.async_refresh(visible=True)
        const.LOGGER.info(
            "INFO: Pending redemptions refreshed (%s active)", len(manager.actionable)
        )
        return {const.RESULT_REDEMPTIONS: list(manager.redemptions)}

    async def handle_accept_penalty(call: ServiceCall) -> ServiceResponse:
        """Handle accepting the loss of a life."""
        coordinator = _coordinator_for_call(hass, call)
        return await coordinator.redemption_manager.async_accept_penalty(
            call.data[const.FIELD_REDEMPTION_ID]
        )

    async def handle_choose_challenge(call: ServiceCall) -> ServiceResponse:
        """Handle assigning a substitute challenge."""
        coordinator = _coordinator_for_call(hass, call)
        return await coordinator.redemption_manager.async_choose_challenge(
            call.data[const.FIELD_REDEMPTION_ID], call.data[const.FIELD_CHALLENGE_ID]
        )

    async def handle_submit_proof(call: ServiceCall) -> ServiceResponse:
        """Handle proof submission for an assigned challenge."""
        coordinator = _coordinator_for_call(hass, call)
        try:
            return await coordinator.redemption_manager.async_submit_proof(
                call.data[const.FIELD_REDEMPTION_ID],
                call.data[const.FIELD_PROOF_TEXT],
                call.data[const.FIELD_PROOF_IMAGE_URLS],
            )
        except ProofValidationError as err:
            const.LOGGER.warning("WARNING: Submit Proof: %s", err)
            raise ServiceValidationError(str(err)) from err

    async def handle_check_validation_status(call: ServiceCall) -> ServiceResponse:
        """Handle an on-demand validation status check."""
        coordinator = _coordinator_for_call(hass, call)
        return await coordinator.validation_manager.async_check_status(
            call.data[const.FIELD_REDEMPTION_ID]
        )

    async def handle_reset_validation(call: ServiceCall) -> ServiceResponse:
        """Handle clearing local validation state for a redemption."""
        coordinator = _coordinator_for_call(hass, call)
        return coordinator.validation_manager.reset(
            call.data[const.FIELD_REDEMPTION_ID]
        )

    async def handle_redeem_life_challenge(call: ServiceCall) -> ServiceResponse:
        """Handle redeeming a life challenge."""
        coordinator = _coordinator_for_call(hass, call)
        try:
            result: dict[str, Any] = (
                await coordinator.life_challenge_manager.async_redeem(
                    call.data[const.FIELD_LIFE_CHALLENGE_ID],
                    confirm_partial=call.data[const.FIELD_CONFIRM_PARTIAL],
                )
            )
        except PartialRewardNotConfirmedError as err:
            raise ServiceValidationError(str(err)) from err
        return result

    # --- Register Services ---
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_REFRESH_REDEMPTIONS,
        handle_refresh_redemptions,
        schema=REFRESH_REDEMPTIONS_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_ACCEPT_PENALTY,
        handle_accept_penalty,
        schema=REDEMPTION_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CHOOSE_CHALLENGE,
        handle_choose_challenge,
        schema=CHOOSE_CHALLENGE_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SUBMIT_PROOF,
        handle_submit_proof,
        schema=SUBMIT_PROOF_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CHECK_VALIDATION_STATUS,
        handle_check_validation_status,
        schema=REDEMPTION_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RESET_VALIDATION,
        handle_reset_validation,
        schema=REDEMPTION_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_REDEEM_LIFE_CHALLENGE,
        handle_redeem_life_challenge,
        schema=REDEEM_LIFE_CHALLENGE_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    const.LOGGER.debug("DEBUG: HabitRush services registered")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister HabitRush services when unloading the integration."""
    services = [
        const.SERVICE_REFRESH_REDEMPTIONS,
        const.SERVICE_ACCEPT_PENALTY,
        const.SERVICE_CHOOSE_CHALLENGE,
        const.SERVICE_SUBMIT_PROOF,
        const.SERVICE_CHECK_VALIDATION_STATUS,
        const.SERVICE_RESET_VALIDATION,
        const.SERVICE_REDEEM_LIFE_CHALLENGE,
    ]

    for service in services:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: HabitRush services have been unregistered")

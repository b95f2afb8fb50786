"""Validation Manager - Per-redemption proof validation workflows.

ValidationWorkflow owns the state machine for a single redemption:

    idle -> checking -> pending_review -> approved | rejected
                 \\-> approved | rejected | idle
    rejected -> checking (new proof)

It submits proof, polls the remote judge while a validation is open, and
invokes verdict callbacks through a replaceable ValidationCallbacks cell.
Every request is tagged with the workflow epoch; submit, reset and teardown
bump the epoch so a late response can never overwrite newer state.

ValidationManager creates one workflow per redemption that has a challenge
assigned, tears workflows down when their redemption leaves the active list,
and turns verdicts into Home Assistant bus events.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_track_time_interval

from .. import const
from ..api import HabitRushApiError
from ..engines.validation_engine import ValidationEngine, ValidationSnapshot
from ..utils.dt_utils import dt_now_utc
from ..utils.time_utils import format_review_countdown
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from ..api import HabitRushApiClient
    from ..coordinator import HabitRushDataCoordinator
    from ..type_defs import ChallengeValidationData, ValidationStatusResponse


@dataclass
class ValidationCallbacks:
    """Latest verdict callbacks, always read at invocation time."""

    on_approved: Callable[[str, ChallengeValidationData | None], None] | None = None
    on_rejected: (
        Callable[[str, ChallengeValidationData | None, str], None] | None
    ) = None
    on_refresh_needed: Callable[[], Awaitable[Any]] | None = None


class ValidationWorkflow:
    """Proof-validation state machine for one redemption."""

    def __init__(
        self,
        hass: HomeAssistant,
        api: HabitRushApiClient,
        redemption_id: str,
        poll_interval: timedelta,
        callbacks: ValidationCallbacks,
        notify: Callable[[], None],
    ) -> None:
        self.hass = hass
        self.api = api
        self.redemption_id = redemption_id
        self.state: str = const.WORKFLOW_STATE_IDLE
        self.snapshot = ValidationSnapshot.unknown()
        self.error: str | None = None
        self.retry_allowed = True

        self._poll_interval = poll_interval
        self._callbacks = callbacks
        self._notify = notify
        self._epoch = 0
        self._unsub_poll: CALLBACK_TYPE | None = None
        self._poll_in_flight = False
        self._submitting = False
        self._torn_down = False
        self._terminal_error_code: str | None = None
        self._verdict_validation_id: str | None = None

    # -------------------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------------------

    @property
    def validation(self) -> ChallengeValidationData | None:
        """Current validation record (optimistic or confirmed)."""
        return self.snapshot.data

    @property
    def is_pending(self) -> bool:
        return self.state == const.WORKFLOW_STATE_PENDING_REVIEW

    @property
    def is_approved(self) -> bool:
        return self.state == const.WORKFLOW_STATE_APPROVED

    @property
    def is_rejected(self) -> bool:
        return self.state == const.WORKFLOW_STATE_REJECTED

    @property
    def can_retry(self) -> bool:
        """True when a rejected proof may be resubmitted."""
        return self.is_rejected and self.retry_allowed

    @property
    def rejection_reason(self) -> str | None:
        if not self.is_rejected:
            return None
        return ValidationEngine.rejection_reason(self.validation)

    @property
    def time_until_expiry_ms(self) -> int:
        return ValidationEngine.time_until_expiry_ms(self.validation)

    @property
    def review_countdown(self) -> str:
        """Remaining review window as "{m}m {s}s" / "{s}s"."""
        return format_review_countdown(self.time_until_expiry_ms)

    @property
    def is_polling(self) -> bool:
        return self._unsub_poll is not None

    def as_dict(self) -> dict[str, Any]:
        """Plain view for services, sensors and diagnostics."""
        return {
            const.RESULT_STATE: self.state,
            const.ATTR_SNAPSHOT_KIND: self.snapshot.kind,
            const.ATTR_VALIDATION_ID: self.snapshot.validation_id,
            const.ATTR_VALIDATION_STATUS: (
                self.validation.get(const.DATA_VALIDATION_STATUS)
                if self.validation
                else None
            ),
            const.ATTR_REVIEW_TIME_LEFT: (
                self.review_countdown if self.is_pending else None
            ),
            const.ATTR_REJECTION_REASON: self.rejection_reason,
            const.ATTR_CAN_RETRY: self.can_retry,
            const.ATTR_ERROR: self.error,
        }

    # -------------------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------------------

    def set_callbacks(self, callbacks: ValidationCallbacks) -> None:
        """Replace the callback cell used for future verdicts."""
        self._callbacks = callbacks

    async def async_start(self) -> None:
        """Initial status check when the workflow is created."""
        try:
            await self.async_check_status()
        except HabitRushApiError as err:
            const.LOGGER.debug(
                "DEBUG: Initial validation check failed for redemption %s: %s",
                self.redemption_id,
                err,
            )

    @callback
    def teardown(self) -> None:
        """Stop polling and drop every response still in flight."""
        self._torn_down = True
        self._epoch += 1
        self._stop_polling()

    # -------------------------------------------------------------------------------------
    # Status checks and polling
    # -------------------------------------------------------------------------------------

    async def async_check_status(self) -> str:
        """Fetch the validation status once and apply it.

        Returns:
            Workflow state after the check.

        Raises:
            HabitRushApiError: If the fetch fails. The state is restored.
        """
        if self._torn_down or self.is_approved:
            return self.state
        if self._submitting:
            # The submission owns the state until the server answers
            const.LOGGER.debug(
                "DEBUG: Status check skipped, submission in flight for redemption %s",
                self.redemption_id,
            )
            return self.state

        epoch = self._epoch
        previous = self.state
        if self.state in (const.WORKFLOW_STATE_IDLE, const.WORKFLOW_STATE_REJECTED):
            self._set_state(const.WORKFLOW_STATE_CHECKING)

        try:
            response = await self.api.async_get_validation_status(self.redemption_id)
        except HabitRushApiError as err:
            if epoch == self._epoch:
                self.state = previous
                self.error = str(err)
                self._notify()
            raise

        if epoch != self._epoch:
            const.LOGGER.debug(
                "DEBUG: Discarding stale validation status for redemption %s",
                self.redemption_id,
            )
            return self.state

        self._apply_response(response)
        return self.state

    @callback
    def _start_polling(self) -> None:
        if self._unsub_poll is None and not self._torn_down:
            self._unsub_poll = async_track_time_interval(
                self.hass, self._async_poll_tick, self._poll_interval
            )

    @callback
    def _stop_polling(self) -> None:
        if self._unsub_poll is not None:
            self._unsub_poll()
            self._unsub_poll = None

    async def _async_poll_tick(self, _now: datetime) -> None:
        """Background status poll. Transport failures are swallowed."""
        if self._poll_in_flight or self._torn_down:
            return
        self._poll_in_flight = True
        epoch = self._epoch
        try:
            response = await self.api.async_get_validation_status(self.redemption_id)
        except HabitRushApiError as err:
            const.LOGGER.debug(
                "DEBUG: Validation poll failed for redemption %s: %s",
                self.redemption_id,
                err,
            )
            return
        finally:
            self._poll_in_flight = False

        if epoch != self._epoch or not self.is_pending:
            return
        self._apply_response(response)

    @callback
    def _apply_response(self, response: ValidationStatusResponse) -> None:
        """Apply a server status response to the state machine."""
        state, validation = ValidationEngine.state_for_response(response)
        if validation:
            self.snapshot = ValidationEngine.merge_snapshot(
                self.snapshot, ValidationSnapshot.confirmed(validation)
            )

        if state == const.WORKFLOW_STATE_IDLE and self.is_pending:
            # Submission acknowledged but not yet visible in the status endpoint
            return

        if not ValidationEngine.can_transition(self.state, state):
            const.LOGGER.debug(
                "DEBUG: Ignoring validation transition %s -> %s for redemption %s",
                self.state,
                state,
                self.redemption_id,
            )
            self._notify()
            return

        self.state = state
        self.error = None
        if state == const.WORKFLOW_STATE_PENDING_REVIEW:
            self._start_polling()
        else:
            self._stop_polling()
        self._notify()

        if state in ValidationEngine.TERMINAL_STATES:
            self._handle_verdict(state)

    @callback
    def _handle_verdict(self, state: str) -> None:
        """Invoke verdict callbacks once per validation."""
        validation_id = self.snapshot.validation_id
        if validation_id is not None and validation_id == self._verdict_validation_id:
            return
        self._verdict_validation_id = validation_id

        callbacks = self._callbacks
        if state == const.WORKFLOW_STATE_APPROVED:
            const.LOGGER.info(
                "INFO: Proof approved for redemption %s", self.redemption_id
            )
            if callbacks.on_approved is not None:
                callbacks.on_approved(self.redemption_id, self.validation)
            if callbacks.on_refresh_needed is not None:
                self.hass.async_create_task(callbacks.on_refresh_needed())
        else:
            reason = ValidationEngine.rejection_reason(self.validation)
            const.LOGGER.info(
                "INFO: Proof rejected for redemption %s: %s", self.redemption_id, reason
            )
            if callbacks.on_rejected is not None:
                callbacks.on_rejected(self.redemption_id, self.validation, reason)

    # -------------------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------------------

    async def async_submit_proof(
        self, proof_text: str, proof_image_urls: list[str]
    ) -> dict[str, Any]:
        """Submit proof for the assigned challenge.

        While a validation is already under review no request is sent and the
        open validation is returned. A VALIDATION_PENDING answer from the server
        is adopted through a status re-query rather than surfaced as an error.

        Raises:
            ProofValidationError: If the proof fails the client-side checks.
            HabitRushApiError: If the server rejects the submission, or the
                workflow is approved or out of retries.
            HomeAssistantError: If another submission is in flight.
        """
        text, images = ValidationEngine.validate_proof(proof_text, proof_image_urls)

        if self._torn_down:
            raise HomeAssistantError(
                f"Redemption {self.redemption_id} is no longer active"
            )
        if self.is_approved:
            raise HabitRushApiError(const.ERROR_ALREADY_COMPLETED)
        if self.is_pending:
            const.LOGGER.debug(
                "DEBUG: Validation already under review for redemption %s",
                self.redemption_id,
            )
            return self._submission_result()
        if not self.retry_allowed:
            raise HabitRushApiError(
                self._terminal_error_code or const.ERROR_MAX_RETRIES_EXCEEDED
            )
        if self._submitting or self.state == const.WORKFLOW_STATE_CHECKING:
            raise HomeAssistantError(
                f"A request for redemption {self.redemption_id} is already in progress"
            )

        self._submitting = True
        self._epoch += 1
        epoch = self._epoch
        previous = self.state
        self._stop_polling()
        self._set_state(const.WORKFLOW_STATE_CHECKING)

        try:
            response = await self.api.async_submit_challenge_proof(
                self.redemption_id, text, images
            )
        except HabitRushApiError as err:
            if err.error_code == const.ERROR_VALIDATION_PENDING:
                const.LOGGER.info(
                    "INFO: Redemption %s already has an open validation, adopting it",
                    self.redemption_id,
                )
                self.error = None
                await self._async_adopt_open_validation(epoch, previous)
                return self._submission_result()
            if epoch == self._epoch:
                self.state = previous
                self.error = str(err)
                if err.is_terminal:
                    self.retry_allowed = False
                    self._terminal_error_code = err.error_code
                self._notify()
            raise
        finally:
            self._submitting = False

        validation_id = response.get(const.API_FIELD_VALIDATION_ID)
        if epoch != self._epoch:
            const.LOGGER.debug(
                "DEBUG: Workflow for redemption %s was reset during submission",
                self.redemption_id,
            )
            return {
                const.RESULT_VALIDATION_ID: validation_id,
                const.RESULT_STATE: self.state,
                const.RESULT_MESSAGE: response.get(const.API_FIELD_MESSAGE),
            }

        self.snapshot = ValidationEngine.merge_snapshot(
            self.snapshot,
            ValidationSnapshot.optimistic(
                ValidationEngine.build_optimistic_validation(
                    validation_id, dt_now_utc()
                )
            ),
        )
        self.error = None
        # The server accepted the proof, so its epoch decides the state
        self.state = const.WORKFLOW_STATE_PENDING_REVIEW
        self._start_polling()
        self._notify()
        const.LOGGER.info(
            "INFO: Proof submitted for redemption %s (validation %s)",
            self.redemption_id,
            validation_id,
        )

        result = self._submission_result()
        result[const.RESULT_MESSAGE] = response.get(const.API_FIELD_MESSAGE)
        return result

    async def _async_adopt_open_validation(self, epoch: int, previous: str) -> None:
        """Re-query status after a duplicate submission and take the server's view."""
        try:
            response = await self.api.async_get_validation_status(self.redemption_id)
        except HabitRushApiError as err:
            if epoch == self._epoch:
                self.state = previous
                self.error = str(err)
                self._notify()
            raise
        if epoch != self._epoch:
            return
        self._apply_response(response)

    def _submission_result(self) -> dict[str, Any]:
        return {
            const.RESULT_VALIDATION_ID: self.snapshot.validation_id,
            const.RESULT_STATE: self.state,
        }

    # -------------------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------------------

    @callback
    def reset(self) -> None:
        """Clear local validation state and stop polling.

        An approved workflow is final and is left untouched.
        """
        if self.is_approved:
            const.LOGGER.debug(
                "DEBUG: Reset ignored, redemption %s already approved",
                self.redemption_id,
            )
            return
        self._epoch += 1
        self._stop_polling()
        self.state = const.WORKFLOW_STATE_IDLE
        self.snapshot = ValidationSnapshot.unknown()
        self.error = None
        self._notify()

    @callback
    def _set_state(self, new_state: str) -> None:
        if not ValidationEngine.can_transition(self.state, new_state):
            raise HomeAssistantError(
                f"Invalid validation transition {self.state} -> {new_state}"
            )
        self.state = new_state
        self._notify()


class ValidationManager(BaseManager):
    """Owns one ValidationWorkflow per redemption with an assigned challenge."""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: HabitRushDataCoordinator,
        api: HabitRushApiClient,
    ) -> None:
        super().__init__(hass, coordinator)
        self.api = api
        self._workflows: dict[str, ValidationWorkflow] = {}
        self._poll_interval = timedelta(
            seconds=coordinator.config_entry.options.get(
                const.CONF_VALIDATION_POLL_INTERVAL,
                const.DEFAULT_VALIDATION_POLL_INTERVAL,
            )
        )
        self._callbacks = ValidationCallbacks(
            on_approved=self._on_approved,
            on_rejected=self._on_rejected,
            on_refresh_needed=coordinator.async_refresh_profile_and_redemptions,
        )

    async def async_setup(self) -> None:
        """Follow the redemption list to create and drop workflows."""
        self.listen(
            const.SIGNAL_SUFFIX_REDEMPTIONS_UPDATED, self._handle_redemptions_updated
        )

    async def async_teardown(self) -> None:
        """Tear down every workflow."""
        for workflow in self._workflows.values():
            workflow.teardown()
        self._workflows.clear()

    @property
    def workflows(self) -> dict[str, ValidationWorkflow]:
        return self._workflows

    def set_callbacks(self, callbacks: ValidationCallbacks) -> None:
        """Replace the verdict callbacks for current and future workflows."""
        self._callbacks = callbacks
        for workflow in self._workflows.values():
            workflow.set_callbacks(callbacks)

    def find_workflow(self, redemption_id: str) -> ValidationWorkflow | None:
        return self._workflows.get(redemption_id)

    def get_workflow(self, redemption_id: str) -> ValidationWorkflow:
        """Return the workflow for a redemption, creating it when missing."""
        workflow = self._workflows.get(redemption_id)
        if workflow is None:
            workflow = ValidationWorkflow(
                self.hass,
                self.api,
                redemption_id,
                self._poll_interval,
                self._callbacks,
                partial(self._workflow_updated, redemption_id),
            )
            self._workflows[redemption_id] = workflow
            const.LOGGER.debug(
                "DEBUG: Validation workflow created for redemption %s", redemption_id
            )
        return workflow

    async def async_check_status(self, redemption_id: str) -> dict[str, Any]:
        """On-demand status check for a redemption.

        Raises:
            HomeAssistantError: If the redemption is not in the active list.
        """
        if self.coordinator.redemption_manager.get_redemption(redemption_id) is None:
            raise HomeAssistantError(f"Unknown redemption {redemption_id}")
        workflow = self.get_workflow(redemption_id)
        await workflow.async_check_status()
        return workflow.as_dict()

    def reset(self, redemption_id: str) -> dict[str, Any]:
        """Reset a redemption's workflow.

        Raises:
            HomeAssistantError: If no workflow exists for the redemption.
        """
        workflow = self._workflows.get(redemption_id)
        if workflow is None:
            raise HomeAssistantError(
                f"No validation workflow for redemption {redemption_id}"
            )
        workflow.reset()
        return workflow.as_dict()

    @callback
    def _handle_redemptions_updated(self, payload: dict[str, Any]) -> None:
        active_ids = set(payload.get("redemption_ids") or [])
        for redemption_id in list(self._workflows):
            if redemption_id not in active_ids:
                self._workflows.pop(redemption_id).teardown()
                const.LOGGER.debug(
                    "DEBUG: Validation workflow removed for redemption %s",
                    redemption_id,
                )

        for redemption_id in payload.get("assigned_ids") or []:
            if redemption_id in self._workflows:
                continue
            workflow = self.get_workflow(redemption_id)
            self.hass.async_create_task(workflow.async_start())

    @callback
    def _workflow_updated(self, redemption_id: str) -> None:
        workflow = self._workflows.get(redemption_id)
        self.emit(
            const.SIGNAL_SUFFIX_VALIDATION_UPDATED,
            redemption_id=redemption_id,
            state=workflow.state if workflow else None,
        )

    @callback
    def _on_approved(
        self, redemption_id: str, validation: ChallengeValidationData | None
    ) -> None:
        self.hass.bus.async_fire(
            const.EVENT_VALIDATION_APPROVED,
            {
                const.ATTR_REDEMPTION_ID: redemption_id,
                const.ATTR_VALIDATION_ID: (validation or {}).get(
                    const.DATA_VALIDATION_ID
                ),
                const.ATTR_VALIDATION_STATUS: (validation or {}).get(
                    const.DATA_VALIDATION_STATUS
                ),
            },
        )

    @callback
    def _on_rejected(
        self,
        redemption_id: str,
        validation: ChallengeValidationData | None,
        reason: str,
    ) -> None:
        self.hass.bus.async_fire(
            const.EVENT_VALIDATION_REJECTED,
            {
                const.ATTR_REDEMPTION_ID: redemption_id,
                const.ATTR_VALIDATION_ID: (validation or {}).get(
                    const.DATA_VALIDATION_ID
                ),
                const.ATTR_VALIDATION_STATUS: (validation or {}).get(
                    const.DATA_VALIDATION_STATUS
                ),
                const.ATTR_REJECTION_REASON: reason,
            },
        )

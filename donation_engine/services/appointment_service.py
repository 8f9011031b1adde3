"""
Appointment service: runs lifecycle transitions against the collaborator ports.

Loads the appointment, applies the transition, saves it with the loaded
version and hands any notification to the dispatcher. Conflicts are raised to
the caller, which owns the retry policy.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from donation_engine.config import Settings, get_settings
from donation_engine.exceptions import InvalidInputError
from donation_engine.models.appointment import Appointment, DeferralReason, DonationEvent
from donation_engine.models.emergency import EmergencyRequest
from donation_engine.schemas.answer import AnswerSet
from donation_engine.schemas.notification import NotificationEvent
from donation_engine.schemas.results import RegistrationOutcome, TransferDecision, TransitionResult
from donation_engine.services.appointment_lifecycle import AppointmentLifecycle
from donation_engine.services.emergency_transfer import authorize_transfer
from donation_engine.services.ports import (
    AppointmentStore,
    InventorySource,
    NotificationDispatcher,
    QuestionnaireSource,
)

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(
        self,
        store: AppointmentStore,
        questionnaires: QuestionnaireSource,
        dispatcher: Optional[NotificationDispatcher] = None,
        inventory: Optional[InventorySource] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.questionnaires = questionnaires
        self.dispatcher = dispatcher
        self.inventory = inventory
        self.lifecycle = AppointmentLifecycle(settings or get_settings())

    def register(
        self,
        donor_id: str,
        event: DonationEvent,
        answers: AnswerSet,
        now: datetime,
    ) -> RegistrationOutcome:
        questionnaire = self.questionnaires.get_questionnaire()
        verdict = self.lifecycle.evaluator.evaluate(questionnaire, answers)
        outcome = self.lifecycle.create(verdict, donor_id, event, now)
        if outcome.appointment is not None:
            self.store.add(outcome.appointment)
        return outcome

    def reregister(
        self,
        appointment_id: str,
        expected_status: Any,
        event: DonationEvent,
        answers: AnswerSet,
        now: datetime,
    ) -> RegistrationOutcome:
        appointment = self._load(appointment_id)
        outcome = self.lifecycle.reregister(
            appointment,
            expected_status,
            event,
            self.questionnaires.get_questionnaire(),
            answers,
            now,
        )
        if outcome.appointment is not None:
            self.store.add(outcome.appointment)
        return outcome

    def decide(self, appointment_id: str, expected_status: Any, decision: Any, now: datetime,
               note: Optional[str] = None) -> TransitionResult:
        return self._apply(
            appointment_id,
            lambda a: self.lifecycle.decide(a, expected_status, decision, now, note=note),
        )

    def check_in(self, appointment_id: str, expected_status: Any, now: datetime) -> TransitionResult:
        return self._apply(
            appointment_id,
            lambda a: self.lifecycle.check_in(a, expected_status, now),
        )

    def record_donation(self, appointment_id: str, expected_status: Any, now: datetime,
                        **kwargs: Any) -> TransitionResult:
        return self._apply(
            appointment_id,
            lambda a: self.lifecycle.record_donation(a, expected_status, now, **kwargs),
        )

    def set_deferred(self, appointment_id: str, expected_status: Any, reason: DeferralReason,
                     now: datetime, note: Optional[str] = None) -> TransitionResult:
        return self._apply(
            appointment_id,
            lambda a: self.lifecycle.set_deferred(a, expected_status, reason, now, note=note),
        )

    def cancel(self, appointment_id: str, expected_status: Any, now: datetime) -> TransitionResult:
        return self._apply(
            appointment_id,
            lambda a: self.lifecycle.cancel(a, expected_status, now),
        )

    def authorize_transfer(self, request: EmergencyRequest, expected_status: Any,
                           now: datetime) -> TransferDecision:
        """Check stock for an approved emergency request; the caller persists the returned request."""
        if self.inventory is None:
            raise InvalidInputError("No inventory source configured")
        records = self.inventory.snapshot(request.blood_type)
        decision = authorize_transfer(request, expected_status, records, now)
        if decision.notification is not None:
            self._dispatch(decision.notification)
        return decision

    def _load(self, appointment_id: str) -> Appointment:
        appointment = self.store.get(appointment_id)
        if appointment is None:
            raise InvalidInputError(f"Unknown appointment {appointment_id}")
        return appointment

    def _apply(
        self,
        appointment_id: str,
        transition: Callable[[Appointment], TransitionResult],
    ) -> TransitionResult:
        appointment = self._load(appointment_id)
        result = transition(appointment)
        if result.appointment.version != appointment.version:
            self.store.save(result.appointment, expected_version=appointment.version)
        if result.notification is not None:
            self._dispatch(result.notification)
        return result

    def _dispatch(self, event: NotificationEvent) -> None:
        if self.dispatcher is None:
            return
        try:
            self.dispatcher.dispatch(event)
        except Exception as e:
            # Delivery is fire-and-forget; the transition is already saved
            logger.error(f"Failed to dispatch {event.kind.value} for {event.subject_id}: {e}", exc_info=True)

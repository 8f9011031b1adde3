"""
Appointment lifecycle: the state machine from registration to a terminal state.

    create ──► REGISTERED ──────────────┐
       │                                ├──► CHECKED_IN ──► DONATED
       └────► PENDING_REVIEW ──► ELIGIBLE┘         │
                    │                              └──────► DEFERRED
                    └──────────► INELIGIBLE

    REGISTERED / PENDING_REVIEW / ELIGIBLE ──► CANCELLED (donor)

Every transition is a compare-and-set against the caller's expected status
and returns a new Appointment copy with its version incremented. Re-registration
never revives an old appointment; it creates a new one.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Set

from donation_engine.config import Settings, get_settings
from donation_engine.exceptions import ConflictError, InvalidInputError, InvalidTransitionError
from donation_engine.models.appointment import (
    Appointment,
    AppointmentStatus,
    DeferralReason,
    DonationEvent,
    comparable_now,
)
from donation_engine.models.inventory import BloodType, ensure_volume
from donation_engine.models.questionnaire import Questionnaire
from donation_engine.schemas.answer import AnswerSet
from donation_engine.schemas.eligibility import EligibilityStatus, EligibilityVerdict
from donation_engine.schemas.notification import NotificationEvent, NotificationKind
from donation_engine.schemas.results import RegistrationOutcome, TransitionResult
from donation_engine.services.eligibility_evaluator import EligibilityEvaluator

logger = logging.getLogger(__name__)


VALID_TRANSITIONS: Dict[AppointmentStatus, Set[AppointmentStatus]] = {
    AppointmentStatus.REGISTERED: {
        AppointmentStatus.CHECKED_IN,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.PENDING_REVIEW: {
        AppointmentStatus.ELIGIBLE,
        AppointmentStatus.INELIGIBLE,
        AppointmentStatus.PENDING_REVIEW,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.ELIGIBLE: {
        AppointmentStatus.CHECKED_IN,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.CHECKED_IN: {
        AppointmentStatus.DONATED,
        AppointmentStatus.DEFERRED,
    },
    # Terminal states - re-registration creates a new appointment instead
    AppointmentStatus.INELIGIBLE: set(),
    AppointmentStatus.DONATED: set(),
    AppointmentStatus.DEFERRED: set(),
    AppointmentStatus.CANCELLED: set(),
}

STAFF_DECISIONS = frozenset({
    AppointmentStatus.ELIGIBLE,
    AppointmentStatus.INELIGIBLE,
    AppointmentStatus.PENDING_REVIEW,
})


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def _same_day(now: datetime, scheduled_at: datetime) -> bool:
    if now.tzinfo is not None and scheduled_at.tzinfo is not None:
        now = now.astimezone(scheduled_at.tzinfo)
    return now.date() == scheduled_at.date()


def new_appointment_id() -> str:
    return str(uuid.uuid4())


class AppointmentLifecycle:
    """Transition rules for appointments. Holds no appointment state of its own."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        evaluator: Optional[EligibilityEvaluator] = None,
    ):
        self.settings = settings or get_settings()
        self.evaluator = evaluator or EligibilityEvaluator(self.settings)

    # --------------------------------------------------------
    # CREATION
    # --------------------------------------------------------

    def create(
        self,
        verdict: EligibilityVerdict,
        donor_id: str,
        event: DonationEvent,
        now: datetime,
        previous_appointment_id: Optional[str] = None,
    ) -> RegistrationOutcome:
        """
        Create an appointment from an eligibility verdict.

        Eligible -> REGISTERED, needs review -> PENDING_REVIEW. An ineligible
        verdict creates nothing; the outcome carries the verdict and its reason.

        Raises:
            InvalidInputError: if the event has already started
        """
        if not event.is_upcoming(now):
            raise InvalidInputError(f"Event {event.event_id} has already started")

        if verdict.status == EligibilityStatus.INELIGIBLE:
            logger.warning(f"Registration refused for donor {donor_id} at event {event.event_id}: {verdict.reason}")
            return RegistrationOutcome(verdict=verdict)

        if verdict.status == EligibilityStatus.NEEDS_STAFF_REVIEW:
            status = AppointmentStatus.PENDING_REVIEW
        else:
            status = AppointmentStatus.REGISTERED

        appointment = Appointment(
            appointment_id=new_appointment_id(),
            donor_id=donor_id,
            event_id=event.event_id,
            created_at=now,
            scheduled_at=event.starts_at,
            status=status,
            status_changed_at=now,
            requires_staff_review=verdict.requires_staff_review,
            previous_appointment_id=previous_appointment_id,
        )
        logger.info(
            f"Appointment {appointment.appointment_id} created for donor {donor_id} "
            f"at event {event.event_id}: {status.value}"
        )
        return RegistrationOutcome(verdict=verdict, appointment=appointment)

    def reregister(
        self,
        appointment: Appointment,
        expected_status: Any,
        event: DonationEvent,
        questionnaire: Questionnaire,
        answers: AnswerSet,
        now: datetime,
    ) -> RegistrationOutcome:
        """
        Register again after a cancellation or an expired deferral.

        A fresh questionnaire is evaluated and a new appointment is created;
        the old one is left untouched as history.
        """
        self._check_expected(appointment, expected_status)
        current = appointment.status

        if current == AppointmentStatus.DEFERRED:
            if appointment.permanently_deferred or appointment.eligible_again_at is None:
                raise InvalidTransitionError(current, AppointmentStatus.REGISTERED, "deferral is permanent")
            if comparable_now(now, appointment.eligible_again_at) < appointment.eligible_again_at:
                raise InvalidTransitionError(
                    current,
                    AppointmentStatus.REGISTERED,
                    f"deferred until {appointment.eligible_again_at.isoformat()}",
                )
        elif current != AppointmentStatus.CANCELLED:
            raise InvalidTransitionError(
                current,
                AppointmentStatus.REGISTERED,
                "only cancelled or deferred appointments can be re-registered",
            )

        if not event.is_upcoming(now):
            raise InvalidTransitionError(
                current,
                AppointmentStatus.REGISTERED,
                f"event {event.event_id} has already started",
            )

        verdict = self.evaluator.evaluate(questionnaire, answers)
        return self.create(
            verdict,
            appointment.donor_id,
            event,
            now,
            previous_appointment_id=appointment.appointment_id,
        )

    # --------------------------------------------------------
    # STAFF ACTIONS
    # --------------------------------------------------------

    def decide(
        self,
        appointment: Appointment,
        expected_status: Any,
        decision: Any,
        now: datetime,
        note: Optional[str] = None,
    ) -> TransitionResult:
        """Record the staff decision on an appointment held for review."""
        self._check_expected(appointment, expected_status)
        target = AppointmentStatus.from_legacy(decision)
        if target not in STAFF_DECISIONS:
            raise InvalidInputError(f"Not a staff review decision: {target.value}")

        if appointment.status == target == AppointmentStatus.PENDING_REVIEW:
            # Re-affirming the pending state changes nothing but the note
            updated = appointment
            if note is not None:
                updated = appointment.model_copy(update={
                    "staff_note": note,
                    "version": appointment.version + 1,
                })
            return TransitionResult(appointment=updated, previous_status=appointment.status)

        changes: Dict[str, Any] = {}
        if note is not None:
            changes["staff_note"] = note
        updated = self._transition(appointment, target, now, **changes)

        notification = None
        if target == AppointmentStatus.ELIGIBLE:
            notification = self._notification(NotificationKind.APPOINTMENT_ELIGIBLE, updated, now)
        return TransitionResult(
            appointment=updated,
            previous_status=appointment.status,
            notification=notification,
        )

    def check_in(self, appointment: Appointment, expected_status: Any, now: datetime) -> TransitionResult:
        """Mark the donor present. Only allowed on the day of the event."""
        self._check_expected(appointment, expected_status)
        self._guard(appointment, AppointmentStatus.CHECKED_IN)
        if not _same_day(now, appointment.scheduled_at):
            raise InvalidTransitionError(
                appointment.status,
                AppointmentStatus.CHECKED_IN,
                f"check-in is only allowed on {appointment.scheduled_at.date().isoformat()}",
            )
        updated = self._transition(appointment, AppointmentStatus.CHECKED_IN, now)
        return TransitionResult(appointment=updated, previous_status=appointment.status)

    def record_donation(
        self,
        appointment: Appointment,
        expected_status: Any,
        now: datetime,
        can_donate: bool = True,
        volume: Any = None,
        blood_type: Any = None,
        deferral_reason: Optional[DeferralReason] = None,
        note: Optional[str] = None,
    ) -> TransitionResult:
        """
        Record the outcome of a draw for a checked-in donor.

        When ``can_donate`` is false the appointment is deferred instead and
        ``deferral_reason`` is required.

        Raises:
            InvalidInputError: non-positive volume, unknown blood type, missing deferral reason
        """
        self._check_expected(appointment, expected_status)

        if not can_donate:
            self._guard(appointment, AppointmentStatus.DEFERRED)
            if deferral_reason is None:
                raise InvalidInputError("A deferral reason is required when the donor cannot donate")
            extra = {}
            if blood_type is not None:
                extra["blood_type"] = BloodType.parse(blood_type)
            return self._defer(appointment, deferral_reason, now, note, **extra)

        self._guard(appointment, AppointmentStatus.DONATED)
        donated = ensure_volume(volume, "donation volume")
        if donated <= 0:
            raise InvalidInputError("Donation volume must be positive")
        parsed_type = BloodType.parse(blood_type)

        changes: Dict[str, Any] = {
            "donation_volume": donated,
            "blood_type": parsed_type,
            "next_donation_at": now + timedelta(days=self.settings.donation_interval_days),
        }
        if note is not None:
            changes["staff_note"] = note
        updated = self._transition(appointment, AppointmentStatus.DONATED, now, **changes)
        return TransitionResult(appointment=updated, previous_status=appointment.status)

    def set_deferred(
        self,
        appointment: Appointment,
        expected_status: Any,
        reason: DeferralReason,
        now: datetime,
        note: Optional[str] = None,
    ) -> TransitionResult:
        """Defer a checked-in donor before any draw, e.g. vitals out of range."""
        self._check_expected(appointment, expected_status)
        self._guard(appointment, AppointmentStatus.DEFERRED)
        return self._defer(appointment, reason, now, note)

    # --------------------------------------------------------
    # DONOR ACTIONS
    # --------------------------------------------------------

    def cancel(self, appointment: Appointment, expected_status: Any, now: datetime) -> TransitionResult:
        self._check_expected(appointment, expected_status)
        updated = self._transition(appointment, AppointmentStatus.CANCELLED, now)
        return TransitionResult(appointment=updated, previous_status=appointment.status)

    # --------------------------------------------------------
    # INTERNALS
    # --------------------------------------------------------

    @staticmethod
    def _check_expected(appointment: Appointment, expected_status: Any) -> None:
        expected = AppointmentStatus.from_legacy(expected_status)
        if appointment.status != expected:
            raise ConflictError(appointment.appointment_id, expected, appointment.status)

    @staticmethod
    def _guard(appointment: Appointment, target: AppointmentStatus) -> None:
        if not can_transition(appointment.status, target):
            detail = "terminal state" if appointment.status.is_terminal() else ""
            raise InvalidTransitionError(appointment.status, target, detail)

    def _transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        now: datetime,
        **changes: Any,
    ) -> Appointment:
        self._guard(appointment, target)
        updated = appointment.model_copy(update={
            **changes,
            "status": target,
            "status_changed_at": now,
            "version": appointment.version + 1,
        })
        logger.info(
            f"Appointment {appointment.appointment_id}: "
            f"{appointment.status.value} -> {target.value}"
        )
        return updated

    def _defer(
        self,
        appointment: Appointment,
        reason: DeferralReason,
        now: datetime,
        note: Optional[str],
        **extra: Any,
    ) -> TransitionResult:
        eligible_again_at = reason.eligible_again_at(now)
        updated = self._transition(
            appointment,
            AppointmentStatus.DEFERRED,
            now,
            deferral_reason_code=reason.code,
            deferral_note=note or reason.note or reason.text,
            eligible_again_at=eligible_again_at,
            permanently_deferred=reason.is_permanent,
            **extra,
        )
        notification = self._notification(
            NotificationKind.APPOINTMENT_DEFERRED,
            updated,
            now,
            reason_code=reason.code,
            eligible_again_at=eligible_again_at.isoformat() if eligible_again_at else None,
        )
        return TransitionResult(
            appointment=updated,
            previous_status=appointment.status,
            notification=notification,
        )

    @staticmethod
    def _notification(
        kind: NotificationKind,
        appointment: Appointment,
        now: datetime,
        **details: Any,
    ) -> NotificationEvent:
        return NotificationEvent(
            kind=kind,
            subject_id=appointment.appointment_id,
            occurred_at=now,
            details={
                "donor_id": appointment.donor_id,
                "event_id": appointment.event_id,
                **details,
            },
        )

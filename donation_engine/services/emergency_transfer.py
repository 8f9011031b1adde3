"""
Emergency request gate: approval and transfer authorization.

A transfer is authorized only for an approved request whose blood type has
enough in-stock volume. Decrementing stock is left to the inventory owner.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Set

from donation_engine.exceptions import ConflictError, InvalidTransitionError
from donation_engine.models.emergency import EmergencyRequest, EmergencyStatus
from donation_engine.models.inventory import InventoryRecord
from donation_engine.schemas.notification import NotificationEvent, NotificationKind
from donation_engine.schemas.results import TransferDecision
from donation_engine.services.blood_sufficiency import compare_blood_supply

logger = logging.getLogger(__name__)


EMERGENCY_TRANSITIONS: Dict[EmergencyStatus, Set[EmergencyStatus]] = {
    EmergencyStatus.PENDING: {EmergencyStatus.APPROVED, EmergencyStatus.OVERDUE},
    EmergencyStatus.APPROVED: {EmergencyStatus.TRANSFER_AUTHORIZED, EmergencyStatus.OVERDUE},
    EmergencyStatus.OVERDUE: set(),
    EmergencyStatus.TRANSFER_AUTHORIZED: set(),
}


def _check_expected(request: EmergencyRequest, expected_status: Any) -> None:
    expected = EmergencyStatus.from_legacy(expected_status)
    if request.status != expected:
        raise ConflictError(str(request.request_id), expected, request.status)


def _transition(request: EmergencyRequest, target: EmergencyStatus) -> EmergencyRequest:
    if target not in EMERGENCY_TRANSITIONS[request.status]:
        detail = "terminal state" if request.status.is_terminal() else ""
        raise InvalidTransitionError(request.status, target, detail)
    logger.info(f"Emergency request {request.request_id}: {request.status.value} -> {target.value}")
    return request.model_copy(update={"status": target, "version": request.version + 1})


def approve_request(request: EmergencyRequest, expected_status: Any, now: datetime) -> EmergencyRequest:
    _check_expected(request, expected_status)
    if request.is_past_end_date(now.date()):
        raise InvalidTransitionError(request.status, EmergencyStatus.APPROVED, "request end date has passed")
    return _transition(request, EmergencyStatus.APPROVED)


def mark_overdue(request: EmergencyRequest, expected_status: Any, now: datetime) -> EmergencyRequest:
    _check_expected(request, expected_status)
    if not request.is_past_end_date(now.date()):
        raise InvalidTransitionError(request.status, EmergencyStatus.OVERDUE, "request end date has not passed")
    return _transition(request, EmergencyStatus.OVERDUE)


def authorize_transfer(
    request: EmergencyRequest,
    expected_status: Any,
    inventory: Iterable[InventoryRecord],
    now: datetime,
) -> TransferDecision:
    """
    Authorize a transfer for an approved request when stock covers it.

    Insufficient stock is a normal outcome: the request is returned unchanged
    together with the verdict.

    Raises:
        ConflictError: request status is not the expected one
        InvalidTransitionError: request is not approved
    """
    _check_expected(request, expected_status)
    if request.status != EmergencyStatus.APPROVED:
        raise InvalidTransitionError(request.status, EmergencyStatus.TRANSFER_AUTHORIZED, "request is not approved")

    verdict = compare_blood_supply(request.required_volume, request.blood_type, inventory)
    if not verdict.is_sufficient:
        logger.warning(
            f"Emergency request {request.request_id}: insufficient {verdict.blood_type.value} "
            f"({verdict.available_volume}/{verdict.required_volume} ml)"
        )
        return TransferDecision(request=request, verdict=verdict)

    authorized = _transition(request, EmergencyStatus.TRANSFER_AUTHORIZED)
    notification = NotificationEvent(
        kind=NotificationKind.TRANSFER_AUTHORIZED,
        subject_id=str(request.request_id),
        occurred_at=now,
        details={
            "hospital_id": request.hospital_id,
            "blood_type": verdict.blood_type.value,
            "required_volume": verdict.required_volume,
            "record_ids": [r.record_id for r in verdict.matched_records],
        },
    )
    return TransferDecision(request=authorized, verdict=verdict, notification=notification)

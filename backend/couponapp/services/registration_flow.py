"""Registration phases as a small state machine, reported to the client with each response."""
import enum
from typing import Dict, Tuple


class RegistrationPhase(str, enum.Enum):
    REGISTERING = "registering"
    AWAITING_CODE = "awaiting_code"
    ISSUED = "issued"
    DUPLICATE_DETECTED = "duplicate_detected"


class RegistrationEvent(str, enum.Enum):
    CODE_SENT = "code_sent"
    CODE_REJECTED = "code_rejected"
    CODE_EXPIRED = "code_expired"
    COUPON_ISSUED = "coupon_issued"
    EXISTING_COUPON_RETURNED = "existing_coupon_returned"
    RESTART = "restart"


class InvalidTransition(Exception):
    def __init__(self, phase: RegistrationPhase, event: RegistrationEvent):
        super().__init__(f"No transition from {phase.value} on {event.value}")
        self.phase = phase
        self.event = event


P = RegistrationPhase
E = RegistrationEvent

_TRANSITIONS: Dict[Tuple[RegistrationPhase, RegistrationEvent], RegistrationPhase] = {
    (P.REGISTERING, E.CODE_SENT): P.AWAITING_CODE,
    (P.AWAITING_CODE, E.CODE_SENT): P.AWAITING_CODE,  # resend replaces the code
    (P.AWAITING_CODE, E.CODE_REJECTED): P.AWAITING_CODE,
    (P.AWAITING_CODE, E.CODE_EXPIRED): P.REGISTERING,
    (P.AWAITING_CODE, E.COUPON_ISSUED): P.ISSUED,
    (P.AWAITING_CODE, E.EXISTING_COUPON_RETURNED): P.DUPLICATE_DETECTED,
}


def advance(phase: RegistrationPhase, event: RegistrationEvent) -> RegistrationPhase:
    if event is E.RESTART:
        return P.REGISTERING
    try:
        return _TRANSITIONS[(phase, event)]
    except KeyError:
        raise InvalidTransition(phase, event) from None

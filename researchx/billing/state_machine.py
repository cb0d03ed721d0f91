import logging
from datetime import datetime
from enum import Enum

from researchx.errors import ConflictError

logger = logging.getLogger(__name__)


class PaymentStatus(str, Enum):
    INITIATED = "initiated"
    COMPLETED = "completed"
    FAILED = "failed"


class SettlementState(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    RECIPIENT_CREATED = "recipient_created"
    TRANSFERRED = "transferred"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SettlementState.COMPLETED, SettlementState.FAILED})

# States a crashed or interrupted settlement can be resumed from.
RESUMABLE_STATES = (
    SettlementState.VERIFIED,
    SettlementState.RECIPIENT_CREATED,
    SettlementState.TRANSFERRED,
)

ALLOWED_TRANSITIONS = {
    None: {SettlementState.PENDING},
    SettlementState.PENDING: {SettlementState.VERIFIED, SettlementState.FAILED},
    SettlementState.VERIFIED: {SettlementState.RECIPIENT_CREATED, SettlementState.FAILED},
    SettlementState.RECIPIENT_CREATED: {SettlementState.TRANSFERRED, SettlementState.FAILED},
    SettlementState.TRANSFERRED: {SettlementState.COMPLETED, SettlementState.FAILED},
    # A failed payment may be restarted by a fresh initiation.
    SettlementState.FAILED: {SettlementState.PENDING},
    SettlementState.COMPLETED: set(),
}


class InvalidStateTransition(ConflictError):
    pass


def current_state(project):
    if project.settlement_state is None:
        return None
    return SettlementState(project.settlement_state)


def can_transition(source, target) -> bool:
    return SettlementState(target) in ALLOWED_TRANSITIONS.get(source, set())


class SettlementStateMachine:
    """
    Authoritative settlement state machine.

    This is the ONLY place where a project's settlement state changes.
    Callers persist the project after each transition, before the next
    external call is made.
    """

    @staticmethod
    def transition(project, target: SettlementState):
        source = current_state(project)
        target = SettlementState(target)

        if not can_transition(source, target):
            raise InvalidStateTransition(
                f"Cannot move settlement from {source.value if source else 'none'} to {target.value}"
            )

        project.settlement_state = target.value
        project.updated_at = datetime.utcnow()

        logger.info(
            "Settlement transition",
            extra={
                "project_id": project.id,
                "from_state": source.value if source else None,
                "to_state": target.value,
            },
        )
        return project

    @staticmethod
    def start(project):
        """Begin a new settlement at PENDING (fresh or after a failure)."""
        source = current_state(project)
        if source in (None, SettlementState.FAILED):
            return SettlementStateMachine.transition(project, SettlementState.PENDING)
        if source == SettlementState.PENDING:
            project.updated_at = datetime.utcnow()
            return project
        raise InvalidStateTransition(
            f"Cannot restart settlement in state {source.value}"
        )

    @staticmethod
    def fail(project):
        """Marks the settlement failed. Completed settlements are never failed retroactively."""
        source = current_state(project)
        if source == SettlementState.FAILED:
            return project
        if source == SettlementState.COMPLETED:
            raise InvalidStateTransition("Completed settlements cannot be failed")
        if source is None:
            SettlementStateMachine.transition(project, SettlementState.PENDING)
        return SettlementStateMachine.transition(project, SettlementState.FAILED)

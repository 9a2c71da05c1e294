# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Explicit state machine for one provisioning saga.

Each provisioning request owns one ProvisioningSaga. The coordinator moves
it through the states below and the saga rejects any transition that is
not listed, so compensation triggering can be asserted without any
transport or store involved.

    VALIDATING -> CHECKING_PRECONDITION -> CREATING_IDENTITY -> WRITING_LOCAL
    WRITING_LOCAL -> COMMITTED -> NOTIFYING
    WRITING_LOCAL -> COMPENSATING -> COMPENSATED_THEN_FAILED
    any pre-commit state -> FAILED_NO_COMPENSATION_NEEDED
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class SagaState(str, Enum):
    """Provisioning saga state."""

    VALIDATING = "VALIDATING"
    CHECKING_PRECONDITION = "CHECKING_PRECONDITION"
    CREATING_IDENTITY = "CREATING_IDENTITY"
    WRITING_LOCAL = "WRITING_LOCAL"
    COMMITTED = "COMMITTED"
    COMPENSATING = "COMPENSATING"
    COMPENSATED_THEN_FAILED = "COMPENSATED_THEN_FAILED"
    FAILED_NO_COMPENSATION_NEEDED = "FAILED_NO_COMPENSATION_NEEDED"
    NOTIFYING = "NOTIFYING"


_TRANSITIONS: dict[SagaState, frozenset[SagaState]] = {
    SagaState.VALIDATING: frozenset(
        {SagaState.CHECKING_PRECONDITION, SagaState.FAILED_NO_COMPENSATION_NEEDED}
    ),
    SagaState.CHECKING_PRECONDITION: frozenset(
        {SagaState.CREATING_IDENTITY, SagaState.FAILED_NO_COMPENSATION_NEEDED}
    ),
    SagaState.CREATING_IDENTITY: frozenset(
        {SagaState.WRITING_LOCAL, SagaState.FAILED_NO_COMPENSATION_NEEDED}
    ),
    SagaState.WRITING_LOCAL: frozenset(
        {
            SagaState.COMMITTED,
            SagaState.COMPENSATING,
            SagaState.FAILED_NO_COMPENSATION_NEEDED,
        }
    ),
    SagaState.COMMITTED: frozenset({SagaState.NOTIFYING}),
    SagaState.COMPENSATING: frozenset({SagaState.COMPENSATED_THEN_FAILED}),
    SagaState.COMPENSATED_THEN_FAILED: frozenset(),
    SagaState.FAILED_NO_COMPENSATION_NEEDED: frozenset(),
    SagaState.NOTIFYING: frozenset(),
}

TERMINAL_STATES = frozenset(
    {
        SagaState.COMMITTED,
        SagaState.NOTIFYING,
        SagaState.COMPENSATED_THEN_FAILED,
        SagaState.FAILED_NO_COMPENSATION_NEEDED,
    }
)


class InvalidSagaTransition(Exception):
    """Raised when a saga is moved along an edge that does not exist."""

    def __init__(self, current: SagaState, target: SagaState) -> None:
        super().__init__(f"Invalid saga transition: {current.value} -> {target.value}")
        self.current = current
        self.target = target


class ProvisioningSaga:
    """State of one provisioning request.

    Attributes:
        operation: Name of the flow, used in log lines.
        state: Current state.
        history: Every state entered, in order.
        created_identity_id: Identity created by this saga, if any. Only
            this identity is ever compensated.
        compensation_succeeded: None until compensation runs, then whether
            the identity delete succeeded.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self.state = SagaState.VALIDATING
        self.history: list[SagaState] = [SagaState.VALIDATING]
        self.created_identity_id: str | None = None
        self.compensation_succeeded: bool | None = None

    def advance(self, target: SagaState) -> None:
        """Move to a new state.

        Raises:
            InvalidSagaTransition: If the edge is not allowed.
        """
        if target not in _TRANSITIONS[self.state]:
            raise InvalidSagaTransition(self.state, target)
        logger.debug("Saga %s: %s -> %s", self.operation, self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def record_identity(self, identity_id: str) -> None:
        """Remember the identity this saga created."""
        self.created_identity_id = identity_id

    @property
    def needs_compensation(self) -> bool:
        """Whether a failure now must retract a created identity."""
        return self.state == SagaState.WRITING_LOCAL and self.created_identity_id is not None

    def fail(self) -> None:
        """Move to the failure state that matches what has happened so far."""
        if self.state == SagaState.COMPENSATING:
            self.advance(SagaState.COMPENSATED_THEN_FAILED)
        elif self.state not in TERMINAL_STATES:
            self.advance(SagaState.FAILED_NO_COMPENSATION_NEEDED)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def succeeded(self) -> bool:
        return self.state in (SagaState.COMMITTED, SagaState.NOTIFYING)

"""Ad status state machine.

The transition table below is the only place moderation rules live. Services
ask it for a plan before touching storage and then apply the plan with an
atomic compare-and-set on the source status.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.enums import AdStatusEnum, ModerationActionEnum
from app.modules.permissions.registry import ADS_APPROVE, ADS_EDIT, ADS_REJECT
from app.shared.exceptions import InvalidTransitionException

INITIAL_STATUS = AdStatusEnum.PENDING_APPROVAL
PUBLIC_STATUSES: frozenset[AdStatusEnum] = frozenset({AdStatusEnum.APPROVED})


@dataclass(frozen=True, slots=True)
class Transition:
    """One legal status change and what it demands from the caller."""

    action: ModerationActionEnum
    source: AdStatusEnum
    target: AdStatusEnum
    permission: str
    requires_reason: bool = False
    requires_confirmation: bool = False
    notifies_owner: bool = False


TRANSITIONS: dict[ModerationActionEnum, Transition] = {
    ModerationActionEnum.APPROVE: Transition(
        action=ModerationActionEnum.APPROVE,
        source=AdStatusEnum.PENDING_APPROVAL,
        target=AdStatusEnum.APPROVED,
        permission=ADS_APPROVE,
    ),
    ModerationActionEnum.REJECT: Transition(
        action=ModerationActionEnum.REJECT,
        source=AdStatusEnum.PENDING_APPROVAL,
        target=AdStatusEnum.REJECTED,
        permission=ADS_REJECT,
        requires_reason=True,
        notifies_owner=True,
    ),
    # Suspension reuses ads.edit; there is no dedicated permission for it.
    ModerationActionEnum.SUSPEND: Transition(
        action=ModerationActionEnum.SUSPEND,
        source=AdStatusEnum.APPROVED,
        target=AdStatusEnum.SUSPENDED,
        permission=ADS_EDIT,
        requires_confirmation=True,
    ),
    ModerationActionEnum.UNSUSPEND: Transition(
        action=ModerationActionEnum.UNSUSPEND,
        source=AdStatusEnum.SUSPENDED,
        target=AdStatusEnum.APPROVED,
        permission=ADS_EDIT,
    ),
}


def get_transition(action: ModerationActionEnum) -> Transition:
    """Table entry for a status-changing action."""
    try:
        return TRANSITIONS[action]
    except KeyError as exc:
        raise ValueError(f"{action} is not a status transition") from exc


def can_transition(action: ModerationActionEnum, current_status: AdStatusEnum) -> bool:
    transition = TRANSITIONS.get(action)
    return transition is not None and transition.source == current_status


def plan_transition(action: ModerationActionEnum, current_status: AdStatusEnum) -> Transition:
    """Return the transition to apply or raise ``InvalidTransitionException``.

    A repeated call on an ad that already reached the target status is
    rejected like any other illegal move.
    """
    transition = get_transition(action)
    if transition.source != current_status:
        raise InvalidTransitionException(
            f"Cannot {action} an ad in status {current_status}; expected {transition.source}",
        )
    return transition


def allowed_actions(current_status: AdStatusEnum) -> list[ModerationActionEnum]:
    return [action for action, transition in TRANSITIONS.items() if transition.source == current_status]


def is_public(status: AdStatusEnum) -> bool:
    return status in PUBLIC_STATUSES

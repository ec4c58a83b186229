"""Lead status state machine and per-transition side-effect plans."""

from __future__ import annotations

from dataclasses import dataclass

from leadflow.core.enums import CONTACT_QUALIFYING_STATUSES, STATUS_LABELS, HistoryAction, LeadStatus
from leadflow.core.exceptions import InvalidTransitionError


class StateMachine:
    """Simple in-memory state machine over string states."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transición no permitida: {current} -> {target}")


def _build_lead_transitions() -> dict[str, set[str]]:
    every_status = {status.value for status in LeadStatus}
    transitions = {
        status.value: set(every_status) for status in LeadStatus if status is not LeadStatus.ARCHIVED
    }
    transitions[LeadStatus.ARCHIVED.value] = set()
    return transitions


LEAD_TRANSITIONS = _build_lead_transitions()
lead_state_machine = StateMachine(LEAD_TRANSITIONS)

UNASSIGNED_NOTICE = "El lead no tiene un agente asignado: se actualizó el estado sin crear el contacto."


@dataclass(frozen=True)
class TransitionPlan:
    """What applying a transition must do to a lead.

    `converted_to_contact` of None means the flag is left untouched.
    """

    status: LeadStatus
    history_action: HistoryAction
    description: str = ""
    converted_to_contact: bool | None = None
    convert: bool = False
    contact_tag: str | None = None
    archive: bool = False
    notice: str | None = None


def is_contact_qualifying(status: LeadStatus | str) -> bool:
    return LeadStatus(status) in CONTACT_QUALIFYING_STATUSES


def plan_status_change(current: LeadStatus | str, target: LeadStatus | str, assigned_to: int | None) -> TransitionPlan:
    current = LeadStatus(current)
    target = LeadStatus(target)
    lead_state_machine.assert_transition(current.value, target.value)

    if target is LeadStatus.ARCHIVED:
        return TransitionPlan(
            status=target,
            history_action=HistoryAction.LEAD_ARCHIVED,
            description="Lead archivado",
            archive=True,
        )

    if is_contact_qualifying(target):
        if assigned_to is None:
            return TransitionPlan(
                status=target,
                history_action=HistoryAction.STATUS_CHANGE,
                description=f"Estado cambiado a {STATUS_LABELS[target]} (sin agente asignado)",
                notice=UNASSIGNED_NOTICE,
            )
        return TransitionPlan(
            status=target,
            history_action=HistoryAction.CONVERTED_TO_CONTACT,
            description=f"Lead convertido a contacto con estado {STATUS_LABELS[target]}",
            converted_to_contact=True,
            convert=True,
            contact_tag=target.value,
        )

    # Reverting out of a qualifying status clears the flag but keeps the contact.
    return TransitionPlan(
        status=target,
        history_action=HistoryAction.STATUS_CHANGE,
        description=f"Estado cambiado a {STATUS_LABELS[target]}",
        converted_to_contact=False,
    )


def plan_unassign(current: LeadStatus | str) -> TransitionPlan:
    """Unassigned leads cannot stay in `assigned` or later: fall back to `new`."""
    current = LeadStatus(current)
    lead_state_machine.assert_transition(current.value, LeadStatus.NEW.value)
    return TransitionPlan(
        status=LeadStatus.NEW,
        history_action=HistoryAction.ASSIGNMENT_CHANGE,
        converted_to_contact=False,
    )


def plan_first_assign(current: LeadStatus | str) -> TransitionPlan:
    current = LeadStatus(current)
    lead_state_machine.assert_transition(current.value, LeadStatus.ASSIGNED.value)
    return TransitionPlan(
        status=LeadStatus.ASSIGNED,
        history_action=HistoryAction.ASSIGNMENT_CHANGE,
        convert=True,
        contact_tag=LeadStatus.ASSIGNED.value,
    )


def plan_reassign(current: LeadStatus | str) -> TransitionPlan:
    current = LeadStatus(current)
    if current is LeadStatus.ARCHIVED:
        raise InvalidTransitionError("No se puede reasignar un lead archivado.")
    return TransitionPlan(status=current, history_action=HistoryAction.ASSIGNMENT_CHANGE)

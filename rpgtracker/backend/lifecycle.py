"""Combat lifecycle reducers: PLANNING -> ACTIVE -> COMPLETED."""

from __future__ import annotations

from dataclasses import replace

from rpgtracker.backend.errors import InvalidStateError
from rpgtracker.backend.models import Encounter, EncounterStatus

STRICT_TRANSITIONS: dict[EncounterStatus, frozenset[EncounterStatus]] = {
    EncounterStatus.PLANNING: frozenset({EncounterStatus.ACTIVE}),
    EncounterStatus.ACTIVE: frozenset({EncounterStatus.COMPLETED}),
    EncounterStatus.COMPLETED: frozenset(),
}


def _check_transition(encounter: Encounter, target: EncounterStatus) -> None:
    if target not in STRICT_TRANSITIONS[encounter.status]:
        raise InvalidStateError(
            f"Cannot transition encounter from {encounter.status.value} to {target.value}",
            details={"encounter_id": encounter.id},
        )


def _with_status(encounter: Encounter, status: EncounterStatus) -> Encounter:
    return replace(encounter, status=status, is_active=status == EncounterStatus.ACTIVE)


def start_combat(encounter: Encounter, strict: bool = False) -> Encounter:
    """Enter ACTIVE at round 1, turn 0. Without ``strict`` a re-start is allowed."""
    if len(encounter.participants) == 0:
        raise InvalidStateError(
            "Cannot start combat with no participants",
            details={"encounter_id": encounter.id},
        )
    if strict:
        _check_transition(encounter, EncounterStatus.ACTIVE)
    return replace(_with_status(encounter, EncounterStatus.ACTIVE), round=1, turn=0)


def end_combat(encounter: Encounter, strict: bool = False) -> Encounter:
    """Enter COMPLETED, leaving round and turn as they were."""
    if strict:
        _check_transition(encounter, EncounterStatus.COMPLETED)
    return _with_status(encounter, EncounterStatus.COMPLETED)


def apply_status(encounter: Encounter, status: EncounterStatus, strict: bool = False) -> Encounter:
    """Apply a status from a plain encounter update.

    The default mode sets the status with no transition check, keeping only
    ``is_active`` in step with it. ``strict`` routes the change through the
    guarded transitions instead.
    """
    if not strict:
        return _with_status(encounter, status)
    if status == encounter.status:
        return encounter
    if status == EncounterStatus.ACTIVE:
        return start_combat(encounter, strict=True)
    if status == EncounterStatus.COMPLETED:
        return end_combat(encounter, strict=True)
    _check_transition(encounter, status)
    return _with_status(encounter, status)

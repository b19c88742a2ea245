"""Record builders and normalization for new encounters and participants."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from rpgtracker.backend.errors import InvalidArgumentError, MissingArgumentError
from rpgtracker.backend.models import Encounter, EncounterStatus, Participant, ParticipantCreate

MAX_NAME_LENGTH = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_name(name: str | None) -> str:
    if not name or name.strip() == "":
        raise InvalidArgumentError("Encounter name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidArgumentError(f"Encounter name must be {MAX_NAME_LENGTH} characters or less")
    return name.strip()


def normalize_description(description: str | None) -> str | None:
    if description is None:
        return None
    return description.strip() or None


def build_new_encounter(
    encounter_id: str,
    owner_id: str,
    name: str,
    description: str | None = None,
) -> Encounter:
    """Return a validated PLANNING encounter with an empty roster."""
    if not owner_id:
        raise MissingArgumentError("User ID is required")
    now = utc_now()
    return Encounter(
        id=encounter_id,
        owner_id=owner_id,
        name=normalize_name(name),
        description=normalize_description(description),
        status=EncounterStatus.PLANNING,
        round=1,
        turn=0,
        is_active=False,
        created_at=now,
        updated_at=now,
    )


def build_new_participant(participant_id: str, encounter_id: str, data: ParticipantCreate) -> Participant:
    """Apply creation defaults; HP is clamped so the roster never holds an invalid value."""
    max_hp = max(0, data.max_hp)
    return Participant(
        id=participant_id,
        encounter_id=encounter_id,
        type=data.type,
        character_id=data.character_id or None,
        creature_id=data.creature_id or None,
        name=data.name,
        initiative=data.initiative,
        initiative_roll=data.initiative_roll or None,
        current_hp=max(0, min(max_hp, data.current_hp)),
        max_hp=max_hp,
        temp_hp=max(0, data.temp_hp or 0),
        ac=data.ac,
        conditions=list(data.conditions or []),
        notes=data.notes or None,
    )


def touch(encounter: Encounter) -> Encounter:
    return replace(encounter, updated_at=utc_now())

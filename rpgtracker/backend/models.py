"""Domain records for encounters, participants and their partial updates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EncounterStatus(str, Enum):
    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class ParticipantType(str, Enum):
    CHARACTER = "CHARACTER"
    CREATURE = "CREATURE"


@dataclass(frozen=True)
class Participant:
    id: str
    encounter_id: str
    type: ParticipantType
    name: str
    initiative: int
    current_hp: int
    max_hp: int
    ac: int
    character_id: str | None = None
    creature_id: str | None = None
    initiative_roll: int | None = None
    temp_hp: int = 0
    conditions: list[Any] = field(default_factory=list)
    is_active: bool = True
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "encounterId": self.encounter_id,
            "type": self.type.value,
            "characterId": self.character_id,
            "creatureId": self.creature_id,
            "name": self.name,
            "initiative": self.initiative,
            "initiativeRoll": self.initiative_roll,
            "currentHp": self.current_hp,
            "maxHp": self.max_hp,
            "tempHp": self.temp_hp,
            "ac": self.ac,
            "conditions": list(self.conditions),
            "isActive": self.is_active,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Encounter:
    id: str
    owner_id: str
    name: str
    description: str | None
    status: EncounterStatus
    round: int
    turn: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
    version: int = 1
    participants: tuple[Participant, ...] = ()
    lair_actions: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the encounter aggregate in its camelCase API shape."""
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "round": self.round,
            "turn": self.turn,
            "isActive": self.is_active,
            "participants": [participant.to_dict() for participant in self.participants],
            "lairActions": [dict(action) for action in self.lair_actions],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "version": self.version,
        }


@dataclass(frozen=True)
class ParticipantCreate:
    type: ParticipantType
    name: str
    initiative: int
    current_hp: int
    max_hp: int
    ac: int
    character_id: str | None = None
    creature_id: str | None = None
    initiative_roll: int | None = None
    temp_hp: int | None = None
    conditions: list[Any] | None = None
    notes: str | None = None


@dataclass(frozen=True)
class EncounterUpdate:
    """Partial encounter update; ``None`` means the field is left unchanged."""

    name: str | None = None
    description: str | None = None
    status: EncounterStatus | None = None


@dataclass(frozen=True)
class HpUpdate:
    """Partial HP update; ``None`` means the field is not part of the request."""

    current_hp: int | None = None
    temp_hp: int | None = None
    damage: int | None = None
    healing: int | None = None

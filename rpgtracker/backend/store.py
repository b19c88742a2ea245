"""Persistence interfaces and implementations for encounter data."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
import json
import logging
import threading
from typing import Any, Iterator, Protocol

from rpgtracker.backend.errors import StorageError
from rpgtracker.backend.models import Encounter, EncounterStatus, Participant, ParticipantType

logger = logging.getLogger(__name__)


class EncounterStore(Protocol):
    def insert_encounter(self, encounter: Encounter) -> None:
        """Persist a new encounter row (participants are inserted separately)."""

    def get_encounter(self, encounter_id: str) -> Encounter | None:
        """Return the encounter aggregate with its participants in insertion order."""

    def get_encounter_owner(self, encounter_id: str) -> str | None:
        """Return only the owner id, or None when the encounter does not exist."""

    def list_encounters(self, owner_id: str) -> list[Encounter]:
        """Return the owner's encounter aggregates, most recently updated first."""

    def update_encounter(self, encounter: Encounter, expected_version: int) -> bool:
        """Write the encounter row when the stored version matches; bump the version."""

    def delete_encounter(self, encounter_id: str) -> bool:
        """Delete the encounter and its participants; return whether it existed."""

    def insert_participant(self, participant: Participant) -> None:
        """Persist a new participant row."""

    def get_participant(self, participant_id: str) -> Participant | None:
        """Return a participant by id."""

    def update_participant_hp(
        self,
        participant_id: str,
        current_hp: int,
        temp_hp: int,
        expected_current_hp: int,
        expected_temp_hp: int,
    ) -> bool:
        """Write HP when the stored values still match the expected ones."""


@dataclass
class InMemoryEncounterStore:
    def __post_init__(self) -> None:
        self._encounters: dict[str, Encounter] = {}
        self._participants: dict[str, Participant] = {}
        self._lock = threading.Lock()

    def insert_encounter(self, encounter: Encounter) -> None:
        with self._lock:
            if encounter.id in self._encounters:
                raise StorageError(f"duplicate encounter id {encounter.id}")
            self._encounters[encounter.id] = replace(encounter, participants=())

    def get_encounter(self, encounter_id: str) -> Encounter | None:
        with self._lock:
            return self._aggregate(encounter_id)

    def get_encounter_owner(self, encounter_id: str) -> str | None:
        record = self._encounters.get(encounter_id)
        if record is None:
            return None
        return record.owner_id

    def list_encounters(self, owner_id: str) -> list[Encounter]:
        with self._lock:
            owned = [record for record in self._encounters.values() if record.owner_id == owner_id]
            owned.sort(key=lambda record: record.updated_at, reverse=True)
            return [self._aggregate(record.id) for record in owned]

    def update_encounter(self, encounter: Encounter, expected_version: int) -> bool:
        with self._lock:
            current = self._encounters.get(encounter.id)
            if current is None or current.version != expected_version:
                return False
            self._encounters[encounter.id] = replace(
                encounter,
                participants=(),
                version=expected_version + 1,
            )
            return True

    def delete_encounter(self, encounter_id: str) -> bool:
        with self._lock:
            if self._encounters.pop(encounter_id, None) is None:
                return False
            self._participants = {
                participant_id: participant
                for participant_id, participant in self._participants.items()
                if participant.encounter_id != encounter_id
            }
            return True

    def insert_participant(self, participant: Participant) -> None:
        with self._lock:
            if participant.encounter_id not in self._encounters:
                raise StorageError(f"encounter {participant.encounter_id} does not exist")
            self._participants[participant.id] = participant

    def get_participant(self, participant_id: str) -> Participant | None:
        return self._participants.get(participant_id)

    def update_participant_hp(
        self,
        participant_id: str,
        current_hp: int,
        temp_hp: int,
        expected_current_hp: int,
        expected_temp_hp: int,
    ) -> bool:
        with self._lock:
            participant = self._participants.get(participant_id)
            if participant is None:
                return False
            if participant.current_hp != expected_current_hp or participant.temp_hp != expected_temp_hp:
                return False
            self._participants[participant_id] = replace(participant, current_hp=current_hp, temp_hp=temp_hp)
            return True

    def _aggregate(self, encounter_id: str) -> Encounter | None:
        record = self._encounters.get(encounter_id)
        if record is None:
            return None
        roster = tuple(
            participant for participant in self._participants.values() if participant.encounter_id == encounter_id
        )
        return replace(record, participants=roster)


_ENCOUNTER_COLUMNS = (
    "id, owner_id, name, description, status, round, turn, is_active, "
    "lair_actions, version, created_at, updated_at"
)
_PARTICIPANT_COLUMNS = (
    "id, encounter_id, type, character_id, creature_id, name, initiative, initiative_roll, "
    "current_hp, max_hp, temp_hp, ac, conditions, is_active, notes"
)


def _json_value(raw: Any) -> Any:
    if isinstance(raw, (str, bytes)):
        return json.loads(raw)
    return raw


def _encounter_from_row(row: tuple, participants: tuple[Participant, ...] = ()) -> Encounter:
    (
        encounter_id,
        owner_id,
        name,
        description,
        status,
        round_number,
        turn,
        is_active,
        lair_actions,
        version,
        created_at,
        updated_at,
    ) = row
    return Encounter(
        id=encounter_id,
        owner_id=owner_id,
        name=name,
        description=description,
        status=EncounterStatus(status),
        round=round_number,
        turn=turn,
        is_active=is_active,
        created_at=created_at,
        updated_at=updated_at,
        version=version,
        participants=participants,
        lair_actions=list(_json_value(lair_actions) or []),
    )


def _participant_from_row(row: tuple) -> Participant:
    (
        participant_id,
        encounter_id,
        participant_type,
        character_id,
        creature_id,
        name,
        initiative,
        initiative_roll,
        current_hp,
        max_hp,
        temp_hp,
        ac,
        conditions,
        is_active,
        notes,
    ) = row
    return Participant(
        id=participant_id,
        encounter_id=encounter_id,
        type=ParticipantType(participant_type),
        character_id=character_id,
        creature_id=creature_id,
        name=name,
        initiative=initiative,
        initiative_roll=initiative_roll,
        current_hp=current_hp,
        max_hp=max_hp,
        temp_hp=temp_hp,
        ac=ac,
        conditions=list(_json_value(conditions) or []),
        is_active=is_active,
        notes=notes,
    )


@contextmanager
def _storage_errors() -> Iterator[None]:
    import psycopg

    try:
        yield
    except psycopg.Error as exc:
        logger.error("PostgreSQL error: %s", exc)
        raise StorageError(str(exc) or exc.__class__.__name__) from exc


@dataclass
class PostgresEncounterStore:
    database_url: str

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def insert_encounter(self, encounter: Encounter) -> None:
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO encounters ({_ENCOUNTER_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s, %s, %s)
                    """,
                    (
                        encounter.id,
                        encounter.owner_id,
                        encounter.name,
                        encounter.description,
                        encounter.status.value,
                        encounter.round,
                        encounter.turn,
                        encounter.is_active,
                        json.dumps(encounter.lair_actions),
                        encounter.version,
                        encounter.created_at,
                        encounter.updated_at,
                    ),
                )
            conn.commit()

    def get_encounter(self, encounter_id: str) -> Encounter | None:
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {_ENCOUNTER_COLUMNS} FROM encounters WHERE id = %s", (encounter_id,))
                row = cur.fetchone()
                if row is None:
                    return None
                cur.execute(
                    f"SELECT {_PARTICIPANT_COLUMNS} FROM participants WHERE encounter_id = %s ORDER BY seq",
                    (encounter_id,),
                )
                participant_rows = cur.fetchall()

        participants = tuple(_participant_from_row(participant_row) for participant_row in participant_rows)
        return _encounter_from_row(row, participants)

    def get_encounter_owner(self, encounter_id: str) -> str | None:
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT owner_id FROM encounters WHERE id = %s", (encounter_id,))
                row = cur.fetchone()

        if row is None:
            return None
        return row[0]

    def list_encounters(self, owner_id: str) -> list[Encounter]:
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {_ENCOUNTER_COLUMNS} FROM encounters WHERE owner_id = %s ORDER BY updated_at DESC",
                    (owner_id,),
                )
                rows = cur.fetchall()
                if not rows:
                    return []
                cur.execute(
                    f"SELECT {_PARTICIPANT_COLUMNS} FROM participants WHERE encounter_id = ANY(%s) ORDER BY seq",
                    ([row[0] for row in rows],),
                )
                participant_rows = cur.fetchall()

        rosters: dict[str, list[Participant]] = {row[0]: [] for row in rows}
        for participant_row in participant_rows:
            participant = _participant_from_row(participant_row)
            rosters[participant.encounter_id].append(participant)
        return [_encounter_from_row(row, tuple(rosters[row[0]])) for row in rows]

    def update_encounter(self, encounter: Encounter, expected_version: int) -> bool:
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE encounters
                    SET name = %s, description = %s, status = %s, round = %s, turn = %s,
                        is_active = %s, version = version + 1, updated_at = %s
                    WHERE id = %s AND version = %s
                    """,
                    (
                        encounter.name,
                        encounter.description,
                        encounter.status.value,
                        encounter.round,
                        encounter.turn,
                        encounter.is_active,
                        encounter.updated_at,
                        encounter.id,
                        expected_version,
                    ),
                )
                updated = cur.rowcount == 1
            conn.commit()
        return updated

    def delete_encounter(self, encounter_id: str) -> bool:
        # participants go with the encounter through ON DELETE CASCADE
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM encounters WHERE id = %s", (encounter_id,))
                deleted = cur.rowcount == 1
            conn.commit()
        return deleted

    def insert_participant(self, participant: Participant) -> None:
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO participants ({_PARTICIPANT_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s, %s)
                    """,
                    (
                        participant.id,
                        participant.encounter_id,
                        participant.type.value,
                        participant.character_id,
                        participant.creature_id,
                        participant.name,
                        participant.initiative,
                        participant.initiative_roll,
                        participant.current_hp,
                        participant.max_hp,
                        participant.temp_hp,
                        participant.ac,
                        json.dumps(participant.conditions),
                        participant.is_active,
                        participant.notes,
                    ),
                )
            conn.commit()

    def get_participant(self, participant_id: str) -> Participant | None:
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {_PARTICIPANT_COLUMNS} FROM participants WHERE id = %s", (participant_id,))
                row = cur.fetchone()

        if row is None:
            return None
        return _participant_from_row(row)

    def update_participant_hp(
        self,
        participant_id: str,
        current_hp: int,
        temp_hp: int,
        expected_current_hp: int,
        expected_temp_hp: int,
    ) -> bool:
        with _storage_errors(), self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE participants
                    SET current_hp = %s, temp_hp = %s
                    WHERE id = %s AND current_hp = %s AND temp_hp = %s
                    """,
                    (current_hp, temp_hp, participant_id, expected_current_hp, expected_temp_hp),
                )
                updated = cur.rowcount == 1
            conn.commit()
        return updated


def create_store(database_url: str | None) -> EncounterStore:
    if database_url:
        return PostgresEncounterStore(database_url=database_url)
    return InMemoryEncounterStore()

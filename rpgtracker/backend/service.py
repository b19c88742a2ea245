"""Encounter engine: the single entry point request handlers call into.

Every mutating operation follows the same shape: run the ownership guard,
compute the new record with the pure helpers in ``state``, ``roster`` and
``lifecycle``, write it back with an optimistic check, and return the
refreshed encounter aggregate so callers never need a second fetch.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
import logging
from typing import Iterator
import uuid

from rpgtracker.backend import lifecycle
from rpgtracker.backend.config import BackendSettings
from rpgtracker.backend.errors import ConflictError, InvalidArgumentError, NotFoundError, StorageError
from rpgtracker.backend.guard import OwnershipGuard
from rpgtracker.backend.models import Encounter, EncounterUpdate, HpUpdate, Participant, ParticipantCreate
from rpgtracker.backend.roster import apply_hp_update, calculate_initiative_order
from rpgtracker.backend.state import (
    build_new_encounter,
    build_new_participant,
    normalize_description,
    normalize_name,
    touch,
)
from rpgtracker.backend.store import EncounterStore, create_store

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except StorageError as exc:
        logger.error("Storage failure while trying to %s: %s", operation, exc.message)
        raise StorageError(f"Failed to {operation}: {exc.message}", details=exc.details) from exc


@dataclass
class EncounterEngine:
    store: EncounterStore
    strict_status_transitions: bool = False

    def __post_init__(self) -> None:
        self.guard = OwnershipGuard(self.store)

    def create_encounter(self, owner_id: str, name: str, description: str | None = None) -> Encounter:
        encounter = build_new_encounter(
            encounter_id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name,
            description=description,
        )
        with _storage_errors("create encounter"):
            self.store.insert_encounter(encounter)
            created = self._refreshed(encounter.id)
        logger.info("Encounter %s created by user %s", encounter.id, owner_id)
        return created

    def get_encounter_by_id(self, encounter_id: str) -> Encounter | None:
        """Return any encounter by id. No ownership check happens here."""
        with _storage_errors("fetch encounter"):
            return self.store.get_encounter(encounter_id)

    def get_user_encounters(self, owner_id: str) -> list[Encounter]:
        with _storage_errors("fetch encounters"):
            return self.store.list_encounters(owner_id)

    def update_encounter(self, encounter_id: str, user_id: str, update: EncounterUpdate) -> Encounter:
        with _storage_errors("update encounter"):
            encounter = self.guard.load_owned(encounter_id, user_id)
            updated = encounter
            if update.name is not None:
                updated = replace(updated, name=normalize_name(update.name))
            if update.description is not None:
                updated = replace(updated, description=normalize_description(update.description))
            if update.status is not None:
                updated = lifecycle.apply_status(updated, update.status, strict=self.strict_status_transitions)
            self._save(touch(updated), expected_version=encounter.version)
            logger.debug("Encounter %s updated by user %s", encounter_id, user_id)
            return self._refreshed(encounter_id)

    def delete_encounter(self, encounter_id: str, user_id: str) -> None:
        with _storage_errors("delete encounter"):
            self.guard.verify_ownership(encounter_id, user_id, action="delete")
            if not self.store.delete_encounter(encounter_id):
                raise NotFoundError("Encounter not found", details={"encounter_id": encounter_id})
        logger.info("Encounter %s deleted by user %s", encounter_id, user_id)

    def add_participant(self, encounter_id: str, user_id: str, data: ParticipantCreate) -> Encounter:
        with _storage_errors("add participant"):
            self.guard.verify_ownership(encounter_id, user_id)
            participant = build_new_participant(str(uuid.uuid4()), encounter_id, data)
            self.store.insert_participant(participant)
            logger.debug("Participant %s added to encounter %s", participant.id, encounter_id)
            return self._refreshed(encounter_id)

    def update_participant_hp(
        self,
        participant_id: str,
        encounter_id: str,
        user_id: str,
        update: HpUpdate,
    ) -> Encounter:
        with _storage_errors("update participant HP"):
            self.guard.verify_ownership(encounter_id, user_id)
            participant = self.store.get_participant(participant_id)
            if participant is None:
                raise NotFoundError("Participant not found", details={"participant_id": participant_id})
            if participant.encounter_id != encounter_id:
                raise InvalidArgumentError(
                    "Participant does not belong to this encounter",
                    details={"participant_id": participant_id, "encounter_id": encounter_id},
                )

            changed = apply_hp_update(participant, update)
            written = self.store.update_participant_hp(
                participant_id,
                current_hp=changed.current_hp,
                temp_hp=changed.temp_hp,
                expected_current_hp=participant.current_hp,
                expected_temp_hp=participant.temp_hp,
            )
            if not written:
                logger.warning("HP of participant %s changed concurrently", participant_id)
                raise ConflictError(
                    "Participant was modified by another request",
                    details={"participant_id": participant_id},
                )
            logger.debug(
                "Participant %s HP %s -> %s (temp %s)",
                participant_id,
                participant.current_hp,
                changed.current_hp,
                changed.temp_hp,
            )
            return self._refreshed(encounter_id)

    def start_combat(self, encounter_id: str, user_id: str) -> Encounter:
        with _storage_errors("start combat"):
            encounter = self.guard.load_owned(encounter_id, user_id)
            started = lifecycle.start_combat(encounter, strict=self.strict_status_transitions)
            self._save(touch(started), expected_version=encounter.version)
            logger.info(
                "Combat started in encounter %s with %d participants",
                encounter_id,
                len(encounter.participants),
            )
            return self._refreshed(encounter_id)

    def end_combat(self, encounter_id: str, user_id: str) -> Encounter:
        with _storage_errors("end combat"):
            encounter = self.guard.load_owned(encounter_id, user_id)
            ended = lifecycle.end_combat(encounter, strict=self.strict_status_transitions)
            self._save(touch(ended), expected_version=encounter.version)
            logger.info("Combat ended in encounter %s at round %d", encounter_id, encounter.round)
            return self._refreshed(encounter_id)

    def get_initiative_order(self, encounter_id: str, user_id: str) -> list[Participant]:
        with _storage_errors("fetch initiative order"):
            encounter = self.guard.load_owned(encounter_id, user_id, action="view")
        return calculate_initiative_order(encounter.participants)

    def _save(self, encounter: Encounter, expected_version: int) -> None:
        if not self.store.update_encounter(encounter, expected_version=expected_version):
            logger.warning("Encounter %s changed concurrently (expected version %d)", encounter.id, expected_version)
            raise ConflictError(
                "Encounter was modified by another request",
                details={"encounter_id": encounter.id, "expected_version": expected_version},
            )

    def _refreshed(self, encounter_id: str) -> Encounter:
        encounter = self.store.get_encounter(encounter_id)
        if encounter is None:
            raise NotFoundError("Encounter not found", details={"encounter_id": encounter_id})
        return encounter


def build_engine(settings: BackendSettings) -> EncounterEngine:
    store = create_store(database_url=settings.database_url)
    return EncounterEngine(store=store, strict_status_transitions=settings.strict_status_transitions)

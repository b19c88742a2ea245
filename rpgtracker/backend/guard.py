"""Ownership checks run before every encounter mutation."""

from __future__ import annotations

import logging

from rpgtracker.backend.errors import NotFoundError, UnauthorizedError
from rpgtracker.backend.models import Encounter
from rpgtracker.backend.store import EncounterStore

logger = logging.getLogger(__name__)


class OwnershipGuard:
    def __init__(self, store: EncounterStore) -> None:
        self._store = store

    def verify_ownership(self, encounter_id: str, user_id: str, action: str = "modify") -> None:
        """Raise unless ``user_id`` owns the encounter; only the owner id is read."""
        owner_id = self._store.get_encounter_owner(encounter_id)
        if owner_id is None:
            raise NotFoundError("Encounter not found", details={"encounter_id": encounter_id})
        self._check(encounter_id, owner_id, user_id, action)

    def load_owned(self, encounter_id: str, user_id: str, action: str = "modify") -> Encounter:
        """Fetch the encounter aggregate and check ownership in one step."""
        encounter = self._store.get_encounter(encounter_id)
        if encounter is None:
            raise NotFoundError("Encounter not found", details={"encounter_id": encounter_id})
        self._check(encounter_id, encounter.owner_id, user_id, action)
        return encounter

    def _check(self, encounter_id: str, owner_id: str, user_id: str, action: str) -> None:
        if owner_id == user_id:
            return
        logger.warning("User %s denied %s on encounter %s", user_id, action, encounter_id)
        raise UnauthorizedError(
            f"Not authorized to {action} this encounter",
            details={"encounter_id": encounter_id, "user_id": user_id},
        )

"""Backend package for the RPG session tracker."""

from .config import BackendSettings, configure_logging, load_settings
from .errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidStateError,
    MissingArgumentError,
    NotFoundError,
    StorageError,
    TrackerError,
    UnauthorizedError,
)
from .guard import OwnershipGuard
from .lifecycle import apply_status, end_combat, start_combat
from .models import (
    Encounter,
    EncounterStatus,
    EncounterUpdate,
    HpUpdate,
    Participant,
    ParticipantCreate,
    ParticipantType,
)
from .roster import apply_hp_update, calculate_initiative_order
from .service import EncounterEngine, build_engine
from .store import EncounterStore, InMemoryEncounterStore, PostgresEncounterStore, create_store

__all__ = [
    "apply_hp_update",
    "apply_status",
    "BackendSettings",
    "build_engine",
    "calculate_initiative_order",
    "configure_logging",
    "ConflictError",
    "create_store",
    "Encounter",
    "EncounterEngine",
    "EncounterStatus",
    "EncounterStore",
    "EncounterUpdate",
    "end_combat",
    "HpUpdate",
    "InMemoryEncounterStore",
    "InvalidArgumentError",
    "InvalidStateError",
    "load_settings",
    "MissingArgumentError",
    "NotFoundError",
    "OwnershipGuard",
    "Participant",
    "ParticipantCreate",
    "ParticipantType",
    "PostgresEncounterStore",
    "start_combat",
    "StorageError",
    "TrackerError",
    "UnauthorizedError",
]

import pytest

from rpgtracker.backend.errors import NotFoundError, UnauthorizedError
from rpgtracker.backend.guard import OwnershipGuard
from rpgtracker.backend.state import build_new_encounter
from rpgtracker.backend.store import InMemoryEncounterStore


def _guard_with_encounter() -> OwnershipGuard:
    store = InMemoryEncounterStore()
    store.insert_encounter(build_new_encounter(encounter_id="enc-1", owner_id="owner", name="Crypt"))
    return OwnershipGuard(store)


def test_verify_ownership_accepts_owner() -> None:
    guard = _guard_with_encounter()

    guard.verify_ownership("enc-1", "owner")


def test_verify_ownership_rejects_other_user() -> None:
    guard = _guard_with_encounter()

    with pytest.raises(UnauthorizedError, match="Not authorized to modify this encounter"):
        guard.verify_ownership("enc-1", "intruder")


def test_verify_ownership_names_the_attempted_action() -> None:
    guard = _guard_with_encounter()

    with pytest.raises(UnauthorizedError, match="Not authorized to delete this encounter"):
        guard.verify_ownership("enc-1", "intruder", action="delete")


def test_verify_ownership_reports_missing_encounter() -> None:
    guard = _guard_with_encounter()

    with pytest.raises(NotFoundError, match="Encounter not found"):
        guard.verify_ownership("missing", "owner")


def test_load_owned_returns_aggregate_for_owner() -> None:
    guard = _guard_with_encounter()

    encounter = guard.load_owned("enc-1", "owner")

    assert encounter.id == "enc-1"
    assert encounter.participants == ()


def test_load_owned_rejects_other_user_and_missing_encounter() -> None:
    guard = _guard_with_encounter()

    with pytest.raises(UnauthorizedError):
        guard.load_owned("enc-1", "intruder")
    with pytest.raises(NotFoundError):
        guard.load_owned("missing", "owner")

import pytest

from rpgtracker.backend.errors import InvalidArgumentError, MissingArgumentError
from rpgtracker.backend.models import EncounterStatus, ParticipantCreate, ParticipantType
from rpgtracker.backend.state import build_new_encounter, build_new_participant, normalize_description


def test_build_new_encounter_sets_planning_defaults() -> None:
    encounter = build_new_encounter(encounter_id="enc-123", owner_id="user-1", name="  Goblin Cave  ")

    assert encounter.id == "enc-123"
    assert encounter.owner_id == "user-1"
    assert encounter.name == "Goblin Cave"
    assert encounter.description is None
    assert encounter.status == EncounterStatus.PLANNING
    assert encounter.round == 1
    assert encounter.turn == 0
    assert encounter.is_active is False
    assert encounter.version == 1
    assert encounter.participants == ()
    assert encounter.lair_actions == []


def test_build_new_encounter_uses_shared_utc_timestamp() -> None:
    encounter = build_new_encounter(encounter_id="enc-456", owner_id="user-1", name="Crypt")

    assert encounter.created_at == encounter.updated_at
    assert encounter.created_at.isoformat().endswith("+00:00")


def test_build_new_encounter_requires_owner() -> None:
    with pytest.raises(MissingArgumentError, match="User ID is required"):
        build_new_encounter(encounter_id="enc-1", owner_id="", name="Crypt")


@pytest.mark.parametrize("name", ["", " ", "\t\n"])
def test_build_new_encounter_rejects_blank_name(name: str) -> None:
    with pytest.raises(InvalidArgumentError, match="Encounter name is required"):
        build_new_encounter(encounter_id="enc-1", owner_id="user-1", name=name)


def test_build_new_encounter_name_length_boundary() -> None:
    accepted = build_new_encounter(encounter_id="enc-1", owner_id="user-1", name="a" * 100)

    assert accepted.name == "a" * 100
    with pytest.raises(InvalidArgumentError, match="100 characters or less"):
        build_new_encounter(encounter_id="enc-2", owner_id="user-1", name="a" * 101)


def test_normalize_description_turns_blank_into_none() -> None:
    assert normalize_description(None) is None
    assert normalize_description("   ") is None
    assert normalize_description("  Ambush at dusk ") == "Ambush at dusk"


def test_build_new_participant_applies_defaults() -> None:
    data = ParticipantCreate(
        type=ParticipantType.CREATURE,
        name="Goblin",
        initiative=12,
        current_hp=7,
        max_hp=7,
        ac=15,
        initiative_roll=0,
        character_id="",
    )

    participant = build_new_participant("p-1", "enc-1", data)

    assert participant.encounter_id == "enc-1"
    assert participant.character_id is None
    assert participant.creature_id is None
    assert participant.initiative_roll is None
    assert participant.temp_hp == 0
    assert participant.conditions == []
    assert participant.notes is None
    assert participant.is_active is True


def test_build_new_participant_clamps_hp_into_range() -> None:
    data = ParticipantCreate(
        type=ParticipantType.CHARACTER,
        name="Aria",
        initiative=15,
        current_hp=40,
        max_hp=30,
        ac=16,
        temp_hp=-3,
    )

    participant = build_new_participant("p-1", "enc-1", data)

    assert participant.current_hp == 30
    assert participant.temp_hp == 0

from rpgtracker.backend.models import HpUpdate, Participant, ParticipantType
from rpgtracker.backend.roster import apply_hp_update, calculate_initiative_order


def _participant(
    name: str,
    initiative: int,
    roll: int | None = None,
    is_active: bool = True,
    current_hp: int = 20,
    max_hp: int = 30,
    temp_hp: int = 0,
) -> Participant:
    return Participant(
        id=f"p-{name}",
        encounter_id="enc-1",
        type=ParticipantType.CREATURE,
        name=name,
        initiative=initiative,
        initiative_roll=roll,
        current_hp=current_hp,
        max_hp=max_hp,
        temp_hp=temp_hp,
        ac=12,
        is_active=is_active,
    )


def _names(participants: list[Participant]) -> list[str]:
    return [participant.name for participant in participants]


def test_initiative_order_sorts_by_initiative_then_roll() -> None:
    participants = [_participant("C", 15, 12), _participant("A", 20, 10), _participant("B", 15, 18)]

    assert _names(calculate_initiative_order(participants)) == ["A", "B", "C"]


def test_initiative_order_excludes_inactive_participants() -> None:
    participants = [_participant("hidden", 30, 20, is_active=False), _participant("visible", 5)]

    assert _names(calculate_initiative_order(participants)) == ["visible"]


def test_initiative_order_keeps_input_order_for_unbroken_ties() -> None:
    participants = [_participant("first", 14), _participant("second", 14), _participant("third", 14, 0)]

    assert _names(calculate_initiative_order(participants)) == ["first", "second", "third"]


def test_initiative_order_keeps_input_order_for_equal_rolls() -> None:
    participants = [_participant("first", 14, 9), _participant("second", 14, 9)]

    assert _names(calculate_initiative_order(participants)) == ["first", "second"]


def test_initiative_order_leaves_unrolled_participant_in_place() -> None:
    participants = [_participant("low", 10, 3), _participant("unrolled", 10), _participant("high", 10, 17)]

    assert _names(calculate_initiative_order(participants)) == ["high", "unrolled", "low"]


def test_initiative_order_does_not_mutate_input() -> None:
    participants = [_participant("slow", 1), _participant("fast", 20)]

    calculate_initiative_order(participants)

    assert _names(participants) == ["slow", "fast"]


def test_initiative_order_of_empty_roster_is_empty() -> None:
    assert calculate_initiative_order([]) == []


def test_apply_hp_update_applies_damage_then_healing() -> None:
    participant = _participant("fighter", 10, current_hp=20, max_hp=30)

    updated = apply_hp_update(participant, HpUpdate(damage=10, healing=4))

    assert updated.current_hp == 14


def test_apply_hp_update_clamps_damage_at_zero() -> None:
    participant = _participant("fighter", 10, current_hp=5, max_hp=30)

    updated = apply_hp_update(participant, HpUpdate(damage=500))

    assert updated.current_hp == 0


def test_apply_hp_update_clamps_healing_at_max() -> None:
    participant = _participant("fighter", 10, current_hp=25, max_hp=30)

    updated = apply_hp_update(participant, HpUpdate(healing=999))

    assert updated.current_hp == 30


def test_apply_hp_update_heals_from_zero_after_overkill_damage() -> None:
    participant = _participant("fighter", 10, current_hp=3, max_hp=30)

    updated = apply_hp_update(participant, HpUpdate(damage=10, healing=4))

    assert updated.current_hp == 4


def test_apply_hp_update_absolute_value_overrides_damage_and_healing() -> None:
    participant = _participant("fighter", 10, current_hp=20, max_hp=30)

    updated = apply_hp_update(participant, HpUpdate(damage=10, healing=4, current_hp=28))

    assert updated.current_hp == 28


def test_apply_hp_update_clamps_absolute_value() -> None:
    participant = _participant("fighter", 10, current_hp=20, max_hp=30)

    assert apply_hp_update(participant, HpUpdate(current_hp=45)).current_hp == 30
    assert apply_hp_update(participant, HpUpdate(current_hp=-8)).current_hp == 0


def test_apply_hp_update_clamps_temp_hp_and_keeps_it_when_absent() -> None:
    participant = _participant("fighter", 10, temp_hp=6)

    assert apply_hp_update(participant, HpUpdate(temp_hp=-2)).temp_hp == 0
    assert apply_hp_update(participant, HpUpdate(temp_hp=9)).temp_hp == 9
    assert apply_hp_update(participant, HpUpdate(damage=1)).temp_hp == 6


def test_apply_hp_update_with_empty_update_changes_nothing() -> None:
    participant = _participant("fighter", 10, current_hp=17, temp_hp=2)

    assert apply_hp_update(participant, HpUpdate()) == participant

"""Participant roster helpers: initiative ordering and hit point math."""

from __future__ import annotations

from dataclasses import replace
from itertools import groupby
from typing import Iterable

from rpgtracker.backend.models import HpUpdate, Participant


def _has_usable_roll(participant: Participant) -> bool:
    return bool(participant.initiative_roll)


def calculate_initiative_order(participants: Iterable[Participant]) -> list[Participant]:
    """Return active participants in turn order, highest initiative first.

    Ties on ``initiative`` are broken by ``initiative_roll`` only between
    participants that both carry a non-zero roll: those are reordered by roll
    among the positions they already occupy inside the tie. A participant
    without a usable roll keeps its position, and anything still tied keeps
    its input order. Unresolved ties are first-seen-first-served on purpose.
    """
    active = [participant for participant in participants if participant.is_active]
    by_initiative = sorted(active, key=lambda participant: participant.initiative, reverse=True)

    ordered: list[Participant] = []
    for _, tied in groupby(by_initiative, key=lambda participant: participant.initiative):
        group = list(tied)
        rolled = [participant for participant in group if _has_usable_roll(participant)]
        if len(rolled) < 2:
            ordered.extend(group)
            continue
        by_roll = iter(sorted(rolled, key=lambda participant: participant.initiative_roll, reverse=True))
        ordered.extend(next(by_roll) if _has_usable_roll(participant) else participant for participant in group)
    return ordered


def apply_hp_update(participant: Participant, update: HpUpdate) -> Participant:
    """Apply damage, then healing, then an absolute override to the stored HP."""
    current_hp = participant.current_hp
    max_hp = participant.max_hp

    if update.damage is not None:
        current_hp = max(0, current_hp - update.damage)
    if update.healing is not None:
        current_hp = min(max_hp, current_hp + update.healing)
    if update.current_hp is not None:
        current_hp = update.current_hp

    # 0 <= current_hp <= max_hp must hold whatever the request carried
    current_hp = max(0, min(max_hp, current_hp))
    temp_hp = max(0, update.temp_hp) if update.temp_hp is not None else participant.temp_hp

    return replace(participant, current_hp=current_hp, temp_hp=temp_hp)

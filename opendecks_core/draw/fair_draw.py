# opendecks_core/draw/fair_draw.py
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Sequence, Set, Tuple

from opendecks_core.domain.models import Assignment, NightState, Participant, Slot, WindowId
from opendecks_core.registry.signups import category_of
from opendecks_core.validation.validator import (
    CapExceededError,
    DuplicateError,
    EmptyPoolError,
    NoCandidatesError,
    ValidationError,
    normalize_name,
    validate_display_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapSplit:
    male_take: int
    other_take: int


def cap_split(male_available: int, other_available: int, count: int) -> CapSplit:
    """
    How many male-ish / other entries to draw for `count` slots.
    At most floor(count/2) male-ish, unless the other pool cannot fill the rest.
    """
    cap = count // 2
    male_take = min(cap, male_available)
    other_take = min(count - male_take, other_available)
    short = count - (male_take + other_take)
    if short > 0:
        extra = min(short, male_available - male_take)
        male_take += extra
        short -= extra
        other_take += min(short, other_available - other_take)
    return CapSplit(male_take=male_take, other_take=other_take)


def _shuffled(items: Sequence, rng: random.Random) -> list:
    out = list(items)
    rng.shuffle(out)  # Fisher-Yates
    return out


def pick_with_cap(pool: Sequence[Participant], count: int, rng: random.Random) -> List[Participant]:
    male = [p for p in pool if p.category.is_maleish]
    other = [p for p in pool if not p.category.is_maleish]
    split = cap_split(len(male), len(other), count)
    logger.debug("pick_with_cap: pool=%d male=%d other=%d count=%d -> %s", len(pool), len(male), len(other), count, split)
    picks = _shuffled(male, rng)[:split.male_take] + _shuffled(other, rng)[:split.other_take]
    return _shuffled(picks, rng)


def assigned_names(state: NightState, window_id: WindowId) -> Set[str]:
    return {normalize_name(a.participant_name) for a in state.assigned(window_id)}


def assigned_names_global(state: NightState) -> Set[str]:
    return assigned_names(state, WindowId.WINDOW1) | assigned_names(state, WindowId.WINDOW2)


def available_pool(state: NightState, window_id: WindowId) -> List[Participant]:
    """Signups not already playing in the other window."""
    taken = assigned_names(state, window_id.other)
    return [p for p in state.signups if normalize_name(p.display_name) not in taken]


def remaining_names(state: NightState) -> List[str]:
    taken = assigned_names_global(state)
    return [p.display_name for p in state.signups if normalize_name(p.display_name) not in taken]


def maleish_count(state: NightState, window_id: WindowId, exclude_slot: Optional[str] = None) -> int:
    return sum(
        1 for a in state.assigned(window_id)
        if a.slot_id != exclude_slot and category_of(state, a.participant_name).is_maleish
    )


def window_cap(state: NightState, window_id: WindowId) -> int:
    # recomputed per window from its current length
    return len(state.assigned(window_id)) // 2


def _draw(state: NightState, window_id: WindowId, slots: Sequence[Slot], rng: random.Random, now: datetime) -> NightState:
    if not state.signups:
        raise EmptyPoolError()
    pool = available_pool(state, window_id)
    if not pool:
        raise NoCandidatesError("No sign-ups available for this window.")
    n = min(len(pool), len(slots))
    picks = pick_with_cap(pool, n, rng)
    assignments = tuple(
        Assignment(slot_id=slot.id, start=slot.start, end=slot.end, participant_name=p.display_name)
        for slot, p in zip(slots, picks)
    )
    return replace(state.with_assignments(window_id, assignments), last_draw_at=now)


def run_draw(state: NightState, window_id: WindowId, slots: Sequence[Slot], rng: random.Random, now: datetime) -> NightState:
    out = _draw(state, window_id, slots, rng, now)
    logger.info("draw complete for %s: %s", window_id.key, [a.participant_name for a in out.assigned(window_id)])
    return out


def redraw_window(state: NightState, window_id: WindowId, slots: Sequence[Slot], rng: random.Random, now: datetime) -> NightState:
    out = _draw(state, window_id, slots, rng, now)
    logger.info("window re-drawn %s: %s", window_id.key, [a.participant_name for a in out.assigned(window_id)])
    return out


def _find_assignment(state: NightState, window_id: WindowId, slot_id: str) -> Assignment:
    for a in state.assigned(window_id):
        if a.slot_id == slot_id:
            return a
    raise ValidationError(f"No set time for slot {slot_id} in this window.")


def _with_participant(state: NightState, window_id: WindowId, slot_id: str, name: str) -> NightState:
    items = tuple(
        replace(a, participant_name=name) if a.slot_id == slot_id else a
        for a in state.assigned(window_id)
    )
    return state.with_assignments(window_id, items)


def reroll_slot(state: NightState, window_id: WindowId, slot_id: str, rng: random.Random) -> NightState:
    current = _find_assignment(state, window_id, slot_id)
    cap = window_cap(state, window_id)
    male_excl = maleish_count(state, window_id, exclude_slot=slot_id)
    taken = assigned_names_global(state)
    candidates = [
        p for p in state.signups
        if normalize_name(p.display_name) not in taken
        and (not p.category.is_maleish or male_excl < cap)
    ]
    logger.debug("reroll %s/%s: cap=%d male_excl=%d candidates=%d", window_id.key, slot_id, cap, male_excl, len(candidates))
    if not candidates:
        raise NoCandidatesError("No remaining candidates that satisfy the 50% male cap.")
    pick = candidates[rng.randrange(len(candidates))]
    logger.info("slot re-rolled %s: %s -> %s", window_id.key, current.participant_name, pick.display_name)
    return _with_participant(state, window_id, slot_id, pick.display_name)


def manual_replace(state: NightState, window_id: WindowId, slot_id: str, raw_name: Optional[str]) -> NightState:
    name = validate_display_name(raw_name, "Enter a name to replace with.")
    current = _find_assignment(state, window_id, slot_id)
    key = normalize_name(name)

    dupe_here = any(
        normalize_name(a.participant_name) == key and a.slot_id != slot_id
        for a in state.assigned(window_id)
    )
    dupe_other = key in assigned_names(state, window_id.other)
    if dupe_here or dupe_other:
        raise DuplicateError("That artist already has a slot tonight.")

    cap = window_cap(state, window_id)
    male_excl = maleish_count(state, window_id, exclude_slot=slot_id)
    if category_of(state, name).is_maleish and male_excl >= cap:
        raise CapExceededError()

    logger.info("slot updated %s: %s -> %s", window_id.key, current.participant_name, name)
    return _with_participant(state, window_id, slot_id, name)


def window_is_valid(state: NightState, window_id: WindowId) -> Tuple[bool, str]:
    """Checks slot uniqueness, global name uniqueness and the male-ish cap for one window."""
    items = state.assigned(window_id)
    slot_ids = [a.slot_id for a in items]
    if len(set(slot_ids)) != len(slot_ids):
        return False, "duplicate slot id"
    names = [normalize_name(a.participant_name) for a in items]
    if len(set(names)) != len(names):
        return False, "duplicate name in window"
    if set(names) & assigned_names(state, window_id.other):
        return False, "name plays in both windows"
    if maleish_count(state, window_id) > window_cap(state, window_id):
        return False, "male-ish cap exceeded"
    return True, ""

# opendecks_core/registry/signups.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Tuple, Union, Optional

from opendecks_core.domain.models import Category, NightState, Participant
from opendecks_core.domain.timegrid import to_utc
from opendecks_core.validation.validator import (
    DuplicateError,
    normalize_name,
    validate_category,
    validate_cooldown,
    validate_display_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignupRecord:
    name: str
    category: Category
    signed_up_at: datetime


def submit(
    state: NightState,
    display_name: Optional[str],
    category: Union[Category, str, None],
    now: datetime,
    cooldown_seconds: int = 60,
) -> Tuple[NightState, Participant]:
    """
    Append a participant. Checks run in order: name, category, cooldown, duplicate.
    The cooldown only applies while `state.cooldown_enabled` is set.
    """
    name = validate_display_name(display_name)
    cat = validate_category(category)
    validate_cooldown(state.last_signup_at, now, state.cooldown_enabled, cooldown_seconds)

    key = normalize_name(name)
    if any(normalize_name(p.display_name) == key for p in state.signups):
        raise DuplicateError("That name is already signed up.")

    entry = Participant(id=str(uuid.uuid4()), display_name=name, category=cat, signed_up_at=now)
    logger.info("signup added: %s (%s)", name, cat.value)
    return replace(state, signups=state.signups + (entry,), last_signup_at=now), entry


def remove(state: NightState, participant_id: str) -> NightState:
    # assignments that reference the removed name stay in place until an admin rerolls/replaces
    kept = tuple(p for p in state.signups if p.id != participant_id)
    if len(kept) == len(state.signups):
        logger.debug("remove: no participant with id %s", participant_id)
        return state
    gone = next(p for p in state.signups if p.id == participant_id)
    logger.info("signup removed: %s", gone.display_name)
    return replace(state, signups=kept)


def find_by_name(state: NightState, name: str) -> Optional[Participant]:
    key = normalize_name(name)
    for p in state.signups:
        if normalize_name(p.display_name) == key:
            return p
    return None


def category_of(state: NightState, name: str) -> Category:
    """Free-text names with no signup count as undisclosed."""
    p = find_by_name(state, name)
    return p.category if p else Category.PREFER_NOT_TO_SAY


def export_records(state: NightState) -> List[SignupRecord]:
    ordered = sorted(state.signups, key=lambda p: to_utc(p.signed_up_at))
    return [SignupRecord(name=p.display_name, category=p.category, signed_up_at=p.signed_up_at) for p in ordered]


def newest_first(state: NightState) -> List[Participant]:
    return sorted(state.signups, key=lambda p: to_utc(p.signed_up_at), reverse=True)

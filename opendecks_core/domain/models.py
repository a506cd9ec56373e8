# opendecks_core/domain/models.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class Category(Enum):
    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non-binary"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"
    DUO = "duo"

    @property
    def is_maleish(self) -> bool:
        """Male and duo entries count towards the per-window cap."""
        return self in (Category.MALE, Category.DUO)

    @property
    def label(self) -> str:
        return self.value.replace("prefer-not-to-say", "prefer not").replace("-", " ")


class WindowId(Enum):
    WINDOW1 = 1
    WINDOW2 = 2

    @property
    def other(self) -> "WindowId":
        return WindowId.WINDOW2 if self is WindowId.WINDOW1 else WindowId.WINDOW1

    @property
    def key(self) -> str:
        return f"window{self.value}"


@dataclass(frozen=True)
class Participant:
    id: str
    display_name: str
    category: Category
    signed_up_at: datetime


@dataclass(frozen=True)
class Slot:
    """30-minute sub-interval of a window; half-open [start, end)."""
    id: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Window:
    window_id: WindowId
    start: datetime
    end: datetime
    draw_trigger: datetime
    slots: Tuple[Slot, ...]

    def slot(self, slot_id: str) -> Optional[Slot]:
        for s in self.slots:
            if s.id == slot_id:
                return s
        return None


@dataclass(frozen=True)
class NightSchedule:
    """Both windows of one logical night, generated from its base midnight."""
    base: datetime
    window1: Window
    window2: Window

    def window(self, window_id: WindowId) -> Window:
        return self.window1 if window_id is WindowId.WINDOW1 else self.window2

    @property
    def windows(self) -> Tuple[Window, Window]:
        return (self.window1, self.window2)


@dataclass(frozen=True)
class Assignment:
    slot_id: str
    start: datetime
    end: datetime
    participant_name: str


@dataclass(frozen=True)
class NightState:
    """Aggregate root for one session. Never mutated; replaced on every operation."""
    signups: Tuple[Participant, ...] = ()
    window1: Tuple[Assignment, ...] = ()
    window2: Tuple[Assignment, ...] = ()
    last_draw_at: Optional[datetime] = None
    last_signup_at: Optional[datetime] = None
    cooldown_enabled: bool = True
    version: int = field(default=0, compare=False)

    def assigned(self, window_id: WindowId) -> Tuple[Assignment, ...]:
        return self.window1 if window_id is WindowId.WINDOW1 else self.window2

    def with_assignments(self, window_id: WindowId, items: Tuple[Assignment, ...]) -> "NightState":
        if window_id is WindowId.WINDOW1:
            return replace(self, window1=tuple(items))
        return replace(self, window2=tuple(items))

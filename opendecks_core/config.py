# opendecks_core/config.py
from dataclasses import dataclass


@dataclass(frozen=True)
class DrawConfig:
    """Offsets are wall-clock minutes from the night's base midnight."""
    draw1_offset_min: int = 22 * 60 + 45   # 22:45 tonight
    draw2_offset_min: int = 24 * 60 + 45   # 00:45 next day
    window1_start_min: int = 23 * 60       # 23:00
    window1_end_min: int = 25 * 60         # 01:00 next day
    window2_start_min: int = 25 * 60       # 01:00 next day
    window2_end_min: int = 27 * 60         # 03:00 next day
    slot_minutes: int = 30
    max_slots_per_window: int = 4


@dataclass(frozen=True)
class SignupConfig:
    cooldown_seconds: int = 60  # 1 per minute, device-wide
    cooldown_enabled_default: bool = True


@dataclass(frozen=True)
class SchedulerConfig:
    poll_interval_sec: float = 5.0
    trigger_grace_sec: int = 60
    status_clear_sec: float = 3.0


@dataclass(frozen=True)
class AppConfig:
    timezone_name: str = "Europe/London"  # GMT/BST handled by tz rules
    night_cutover_hour: int = 5           # 00:00-04:59 belongs to the previous night
    admin_pin: str = "1796"

    draw: DrawConfig = DrawConfig()
    signup: SignupConfig = SignupConfig()
    scheduler: SchedulerConfig = SchedulerConfig()


DEFAULT_CONFIG = AppConfig()

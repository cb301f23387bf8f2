from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from models import RestaurantSettingDB
from services.errors import ConfigurationError, ErrorCode, NotFoundError, ValidationError


class SettingKeys:
    OPENING_TIME = "OPENING_TIME"
    CLOSING_TIME = "CLOSING_TIME"
    SLOT_DURATION = "RESERVATION_TIME_SLOT_DURATION"
    MAX_RESERVATIONS_PER_USER = "MAX_RESERVATIONS_PER_USER"
    MAX_RESERVATIONS_PER_DAY = "MAX_RESERVATIONS_PER_DAY"
    BOOKING_ADVANCE_DAYS = "BOOKING_ADVANCE_DAYS"


DEFAULT_SETTINGS = {
    SettingKeys.OPENING_TIME: ("11:00", "Restaurant opening time"),
    SettingKeys.CLOSING_TIME: ("22:00", "Restaurant closing time"),
    SettingKeys.SLOT_DURATION: ("120", "Reservation time slot duration in minutes"),
    SettingKeys.MAX_RESERVATIONS_PER_USER: ("3", "Maximum active reservations per user"),
    SettingKeys.MAX_RESERVATIONS_PER_DAY: ("50", "Maximum reservations allowed per day"),
    SettingKeys.BOOKING_ADVANCE_DAYS: ("30", "How many days in advance bookings are allowed"),
}

# Cadence of candidate start times, independent of the slot duration.
SLOT_STEP_MINUTES = 30


def minutes_of(t: time) -> int:
    return t.hour * 60 + t.minute


class SettingsProvider:
    """Reads raw setting strings from the ``restaurant_settings`` table."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        setting = self.db.query(RestaurantSettingDB).filter(RestaurantSettingDB.key == key).first()
        if setting is None:
            return None
        return setting.value


def seed_default_settings(db: Session) -> None:
    """Inserts every missing default setting. Existing values are left alone."""
    existing = {s.key for s in db.query(RestaurantSettingDB).all()}
    missing = [key for key in DEFAULT_SETTINGS if key not in existing]
    for key in missing:
        value, description = DEFAULT_SETTINGS[key]
        db.add(RestaurantSettingDB(key=key, value=value, description=description))
    if missing:
        db.commit()
        logger.info(f"Seeded default restaurant settings: {', '.join(missing)}")


def _parse_time(key: str, raw: str) -> time:
    try:
        return datetime.strptime(raw.strip(), "%H:%M").time()
    except ValueError:
        raise ConfigurationError(f"Setting {key} must be HH:MM, got {raw!r}")


def _parse_int(key: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"Setting {key} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class RestaurantConfig:
    opening_time: time
    closing_time: time
    slot_duration: int
    max_reservations_per_user: int
    max_reservations_per_day: int
    booking_advance_days: int

    def __post_init__(self):
        if self.slot_duration <= 0:
            raise ConfigurationError(f"Slot duration must be positive, got {self.slot_duration}")
        if self.opening_time >= self.closing_time:
            raise ConfigurationError(
                f"Opening time {self.opening_time:%H:%M} must be before closing time {self.closing_time:%H:%M}"
            )
        if self.max_reservations_per_user < 0 or self.max_reservations_per_day < 0:
            raise ConfigurationError("Reservation limits must not be negative")
        if self.booking_advance_days < 0:
            raise ConfigurationError("Booking advance window must not be negative")

    @property
    def opening_minutes(self) -> int:
        return minutes_of(self.opening_time)

    @property
    def closing_minutes(self) -> int:
        return minutes_of(self.closing_time)

    @classmethod
    def from_provider(cls, provider) -> "RestaurantConfig":
        def raw(key):
            value = provider.get(key)
            return value if value is not None else DEFAULT_SETTINGS[key][0]

        return cls(
            opening_time=_parse_time(SettingKeys.OPENING_TIME, raw(SettingKeys.OPENING_TIME)),
            closing_time=_parse_time(SettingKeys.CLOSING_TIME, raw(SettingKeys.CLOSING_TIME)),
            slot_duration=_parse_int(SettingKeys.SLOT_DURATION, raw(SettingKeys.SLOT_DURATION)),
            max_reservations_per_user=_parse_int(
                SettingKeys.MAX_RESERVATIONS_PER_USER, raw(SettingKeys.MAX_RESERVATIONS_PER_USER)
            ),
            max_reservations_per_day=_parse_int(
                SettingKeys.MAX_RESERVATIONS_PER_DAY, raw(SettingKeys.MAX_RESERVATIONS_PER_DAY)
            ),
            booking_advance_days=_parse_int(
                SettingKeys.BOOKING_ADVANCE_DAYS, raw(SettingKeys.BOOKING_ADVANCE_DAYS)
            ),
        )


class _OverlayProvider:
    def __init__(self, provider, key, value):
        self.provider = provider
        self.key = key
        self.value = value

    def get(self, key):
        if key == self.key:
            return self.value
        return self.provider.get(key)


def update_setting(db: Session, key: str, value: str) -> RestaurantSettingDB:
    """Stores a new value after checking the resulting config is still valid."""
    setting = db.query(RestaurantSettingDB).filter(RestaurantSettingDB.key == key).first()
    if not setting:
        raise NotFoundError(f"Setting {key} not found")

    try:
        RestaurantConfig.from_provider(_OverlayProvider(SettingsProvider(db), key, value))
    except ConfigurationError as e:
        raise ValidationError(e.message, ErrorCode.CONFIGURATION)

    setting.value = value
    setting.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(setting)
    logger.info(f"Setting {key} changed to {value}")
    return setting

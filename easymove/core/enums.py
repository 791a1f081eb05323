import re
from enum import Enum


def _normalise(value) -> str:
    return re.sub(r"[^a-z0-9]", "", str(value).strip().lower())


class UserRole(str, Enum):
    ADMIN = "admin"
    OPERATOR = "operator"

    def __str__(self):
        return self.value


class VanSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    LUTON = "luton"

    def __str__(self):
        return self.value

    @classmethod
    def _missing_(cls, value):
        key = _normalise(value)
        for member in cls:
            if member.value == key:
                return member
        return cls.MEDIUM


class FloorAccess(str, Enum):
    GROUND = "ground"
    FIRST = "first"
    SECOND = "second"
    THIRD_PLUS = "third-plus"

    def __str__(self):
        return self.value

    @property
    def label(self) -> str:
        return _FLOOR_LABELS[self]

    @classmethod
    def _missing_(cls, value):
        return _FLOOR_ALIASES.get(_normalise(value), cls.GROUND)


_FLOOR_ALIASES = {
    "ground": FloorAccess.GROUND,
    "groundfloor": FloorAccess.GROUND,
    "0": FloorAccess.GROUND,
    "first": FloorAccess.FIRST,
    "firstfloor": FloorAccess.FIRST,
    "1": FloorAccess.FIRST,
    "second": FloorAccess.SECOND,
    "secondfloor": FloorAccess.SECOND,
    "2": FloorAccess.SECOND,
    "third": FloorAccess.THIRD_PLUS,
    "thirdplus": FloorAccess.THIRD_PLUS,
    "thirdfloor": FloorAccess.THIRD_PLUS,
    "thirdfloorplus": FloorAccess.THIRD_PLUS,
    "3": FloorAccess.THIRD_PLUS,
}

_FLOOR_LABELS = {
    FloorAccess.GROUND: "ground floor",
    FloorAccess.FIRST: "first floor",
    FloorAccess.SECOND: "second floor",
    FloorAccess.THIRD_PLUS: "third floor or above",
}


class Urgency(str, Enum):
    STANDARD = "standard"
    PRIORITY = "priority"
    EXPRESS = "express"

    def __str__(self):
        return self.value

    @classmethod
    def _missing_(cls, value):
        key = _normalise(value)
        for member in cls:
            if member.value == key:
                return member
        return cls.STANDARD


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    LOGIN = "login"
    CREATE_BOOKING = "create_booking"
    UPDATE_BOOKING_STATUS = "update_booking_status"
    APPROVE_DRIVER = "approve_driver"

    def __str__(self):
        return self.value

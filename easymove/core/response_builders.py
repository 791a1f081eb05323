from typing import List
from easymove.models.booking import Booking
from easymove.models.driver import Driver
from easymove.models.pricing_history import PricingHistory
from easymove.schemas.booking import BookingOut, PricingHistoryOut
from easymove.schemas.driver import DriverOut


def build_booking_response(booking: Booking) -> BookingOut:
    return BookingOut.model_validate(booking)


def build_driver_response(driver: Driver) -> DriverOut:
    return DriverOut.model_validate(driver)


def build_booking_response_list(bookings: list) -> List[BookingOut]:
    return [build_booking_response(booking) for booking in bookings]


def build_driver_response_list(drivers: list) -> List[DriverOut]:
    return [build_driver_response(driver) for driver in drivers]


def build_pricing_history_response_list(rows: list) -> List[PricingHistoryOut]:
    return [PricingHistoryOut.model_validate(row) for row in rows]

from stableslot.models.facility import Facility
from stableslot.models.facility_day_slot import FacilityDaySlot
from stableslot.models.facility_reservation import FacilityReservation

__all__ = [
    "Facility",
    "FacilityDaySlot",
    "FacilityReservation",
]

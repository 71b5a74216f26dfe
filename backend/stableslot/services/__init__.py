from stableslot.services.reservation_service import (
    cancel_reservation,
    check_availability,
    complete_reservation,
    confirm_reservation,
    create_reservation,
    delete_reservation,
    get_day_slot,
    get_reservation,
    mark_no_show,
    reject_reservation,
    update_reservation,
)

__all__ = [
    "cancel_reservation",
    "check_availability",
    "complete_reservation",
    "confirm_reservation",
    "create_reservation",
    "delete_reservation",
    "get_day_slot",
    "get_reservation",
    "mark_no_show",
    "reject_reservation",
    "update_reservation",
]

from datetime import date

from services.restaurant_config import RestaurantConfig
from services.stores import ReservationStore


class LimitPolicy:
    def __init__(self, reservations: ReservationStore, config: RestaurantConfig):
        self.reservations = reservations
        self.config = config

    def can_user_book(self, user_id: str, day: date) -> bool:
        # Counts the user's own active reservations across every date.
        active = len(self.reservations.query_by_user_active(user_id))
        return active < self.config.max_reservations_per_user

    def can_day_accept_booking(self, day: date) -> bool:
        active = len(self.reservations.query_by_date_active(day))
        return active < self.config.max_reservations_per_day

from .Base import Base
from .RestaurantSetting import RestaurantSetting, RestaurantSettingUpdate
from .RestaurantSettingDB import RestaurantSettingDB
from .Slot import DayAvailability, TimeSlot
from .Table import Table, TableCreate, TableUpdate
from .TableDB import TableDB
from .TableReservation import (
    ACTIVE_STATUSES,
    ReservationStatus,
    TableReservation,
    TableReservationResponse,
    TableReservationStatusUpdate,
)
from .TableReservationDB import TableReservationDB

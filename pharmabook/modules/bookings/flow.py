"""
Patient booking flow as an explicit state machine.

This is the client-side model of the booking widget: it is driven by a
frontend (or an API consumer) that calls the public routes, and it holds no
I/O of its own. The server-side counterparts are the available-dates, slots
and bookings endpoints in pharmabook.routers.booking.

    SelectingDate --select_date--> SelectingTime --select_slot--> EnteringDetails
         ^                              |                              |
         +------------back--------------+<------------back-------------+
                                                                       |
                                                  confirm --> Confirmed

Every state is an immutable value carrying exactly the data gathered so far;
transitions return a new state or raise InvalidTransition.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Union
from uuid import UUID

from pharmabook.modules.bookings.schemas import BookingConfirmation


class InvalidTransition(Exception):
    """Transition not allowed from the current state."""


@dataclass(frozen=True)
class SelectedSlot:
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError("slot end must be after start")


@dataclass(frozen=True)
class SelectingDate:
    service_id: UUID
    fetch_failed: bool = False


@dataclass(frozen=True)
class SelectingTime:
    service_id: UUID
    date: date


@dataclass(frozen=True)
class EnteringDetails:
    service_id: UUID
    date: date
    slot: SelectedSlot


@dataclass(frozen=True)
class Confirmed:
    service_id: UUID
    booking: BookingConfirmation


FlowState = Union[SelectingDate, SelectingTime, EnteringDetails, Confirmed]


class BookingFlow:
    """
    Holds the current state of one patient session.
    """

    def __init__(self, service_id: UUID, state: Optional[FlowState] = None):
        self.service_id = service_id
        self.state: FlowState = state or SelectingDate(service_id=service_id)

    def _expect(self, *types) -> None:
        if not isinstance(self.state, types):
            raise InvalidTransition(
                f"not allowed from {type(self.state).__name__}"
            )

    def dates_unavailable(self) -> FlowState:
        """The date fetch failed: stay on the date step, flagged for retry."""
        self._expect(SelectingDate)
        self.state = SelectingDate(service_id=self.service_id, fetch_failed=True)
        return self.state

    def select_date(self, day: date, eligible: Iterable[date]) -> FlowState:
        self._expect(SelectingDate)
        if day not in set(eligible):
            raise InvalidTransition(f"{day.isoformat()} is not bookable")
        self.state = SelectingTime(service_id=self.service_id, date=day)
        return self.state

    def select_slot(self, slot: SelectedSlot) -> FlowState:
        self._expect(SelectingTime)
        if slot.start.date() != self.state.date:
            raise InvalidTransition("slot is not on the selected date")
        self.state = EnteringDetails(service_id=self.service_id, date=self.state.date, slot=slot)
        return self.state

    def confirm(self, booking: BookingConfirmation) -> FlowState:
        self._expect(EnteringDetails)
        if booking.booking_start != self.state.slot.start:
            raise InvalidTransition("booking does not match the selected slot")
        self.state = Confirmed(service_id=self.service_id, booking=booking)
        return self.state

    def slot_taken(self) -> FlowState:
        """The commit lost a race: back to picking a time on the same date."""
        self._expect(EnteringDetails)
        self.state = SelectingTime(service_id=self.service_id, date=self.state.date)
        return self.state

    def back(self) -> FlowState:
        if isinstance(self.state, SelectingTime):
            self.state = SelectingDate(service_id=self.service_id)
        elif isinstance(self.state, EnteringDetails):
            self.state = SelectingTime(service_id=self.service_id, date=self.state.date)
        else:
            raise InvalidTransition(f"cannot go back from {type(self.state).__name__}")
        return self.state

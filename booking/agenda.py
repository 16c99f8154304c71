"""Admin agenda: period selection, status filter and header counts."""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Sequence, Tuple

from models.appointment import Appointment, AppointmentStatus


class AgendaView(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class StatusFilter(str, Enum):
    ALL = "all"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


VIEW_LABELS = {
    AgendaView.DAY: "Hoje",
    AgendaView.WEEK: "Semana",
    AgendaView.MONTH: "Mês",
}

STATUS_LABELS = {
    AppointmentStatus.CONFIRMED.value: "Confirmado",
    AppointmentStatus.CANCELLED.value: "Cancelado",
    AppointmentStatus.COMPLETED.value: "Concluído",
}


@dataclass(frozen=True)
class AgendaSummary:
    view: AgendaView
    start_date: date
    end_date: date
    confirmed_today: int
    total_in_period: int


def period_bounds(view: AgendaView, reference: date) -> Tuple[date, date]:
    """
    First and last day of the period containing `reference`.

    Weeks run Monday to Sunday.
    """
    if view == AgendaView.DAY:
        return reference, reference
    if view == AgendaView.WEEK:
        start = reference - timedelta(days=reference.weekday())
        return start, start + timedelta(days=6)
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    return reference.replace(day=1), reference.replace(day=last_day)


def filter_by_status(
    appointments: Sequence[Appointment], status_filter: StatusFilter
) -> List[Appointment]:
    if status_filter == StatusFilter.ALL:
        return list(appointments)
    return [a for a in appointments if a.status == status_filter.value]


def count_confirmed_on(appointments: Sequence[Appointment], day: date) -> int:
    return sum(
        1
        for a in appointments
        if a.status == AppointmentStatus.CONFIRMED.value and a.appointment_date == day
    )


def summarize(
    appointments: Sequence[Appointment],
    view: AgendaView,
    reference: date,
    today: date,
) -> AgendaSummary:
    """Header numbers for the agenda of `view` around `reference`."""
    start, end = period_bounds(view, reference)
    return AgendaSummary(
        view=view,
        start_date=start,
        end_date=end,
        confirmed_today=count_confirmed_on(appointments, today),
        total_in_period=len(appointments),
    )

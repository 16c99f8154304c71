"""
Inline keyboards for bot interactions.
"""

from datetime import date
from typing import List, Sequence

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from booking.agenda import AgendaView, StatusFilter
from models.appointment import Appointment, AppointmentStatus
from models.blocked_slot import BlockedSlot
from models.service import Service
from utils.formatting import format_date_br, format_date_short, format_duration, format_price


def get_main_menu_keyboard() -> InlineKeyboardMarkup:
    """Get main menu keyboard."""
    builder = InlineKeyboardBuilder()

    builder.row(
        InlineKeyboardButton(text="💅 Agendar horário", callback_data="book_appointment")
    )
    builder.row(
        InlineKeyboardButton(text="📋 Meus agendamentos", callback_data="my_appointments")
    )
    builder.row(
        InlineKeyboardButton(text="ℹ️ Serviços e preços", callback_data="about")
    )

    return builder.as_markup()


def get_services_keyboard(services: Sequence[Service]) -> InlineKeyboardMarkup:
    """Get services selection keyboard."""
    builder = InlineKeyboardBuilder()

    for service in services:
        builder.row(
            InlineKeyboardButton(
                text=(
                    f"{service.name} • {format_price(service.price)} • "
                    f"{format_duration(service.duration_minutes)}"
                ),
                callback_data=f"service_{service.id}",
            )
        )

    builder.row(InlineKeyboardButton(text="🔙 Voltar", callback_data="main_menu"))

    return builder.as_markup()


def get_dates_keyboard(dates: Sequence[date]) -> InlineKeyboardMarkup:
    """Bookable dates, three per row."""
    builder = InlineKeyboardBuilder()

    for day in dates:
        builder.button(text=format_date_short(day), callback_data=f"date_{day.isoformat()}")
    builder.adjust(3)

    builder.row(InlineKeyboardButton(text="🔙 Voltar", callback_data="booking_back"))

    return builder.as_markup()


def get_times_keyboard(times: Sequence[str]) -> InlineKeyboardMarkup:
    """Free start times of the chosen date, three per row."""
    builder = InlineKeyboardBuilder()

    for value in times:
        builder.button(text=value, callback_data=f"time_{value}")
    builder.adjust(3)

    builder.row(InlineKeyboardButton(text="📅 Outra data", callback_data="change_date"))

    return builder.as_markup()


def get_identity_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="🔙 Voltar", callback_data="booking_back"))
    return builder.as_markup()


def get_review_keyboard() -> InlineKeyboardMarkup:
    """Get booking confirmation keyboard."""
    builder = InlineKeyboardBuilder()

    builder.row(
        InlineKeyboardButton(text="✅ Confirmar", callback_data="confirm_booking")
    )
    builder.row(
        InlineKeyboardButton(text="🔙 Voltar", callback_data="booking_back")
    )
    builder.row(
        InlineKeyboardButton(text="❌ Desistir", callback_data="main_menu")
    )

    return builder.as_markup()


def get_back_to_menu_keyboard() -> InlineKeyboardMarkup:
    """Get simple back to menu keyboard."""
    builder = InlineKeyboardBuilder()

    builder.row(InlineKeyboardButton(text="🔙 Menu principal", callback_data="main_menu"))

    return builder.as_markup()


def get_client_appointments_keyboard(appointments: Sequence[Appointment]) -> InlineKeyboardMarkup:
    """One cancel button per confirmed appointment."""
    builder = InlineKeyboardBuilder()

    for appointment in appointments:
        if appointment.status != AppointmentStatus.CONFIRMED.value:
            continue
        builder.row(
            InlineKeyboardButton(
                text=(
                    f"🗑 Cancelar {format_date_br(appointment.appointment_date)} "
                    f"{appointment.appointment_time}"
                ),
                callback_data=f"client_cancel_{appointment.id}",
            )
        )

    builder.row(InlineKeyboardButton(text="🔙 Menu principal", callback_data="main_menu"))

    return builder.as_markup()


# ========== Admin ==========

_VIEW_BUTTONS = {
    AgendaView.DAY: "Dia",
    AgendaView.WEEK: "Semana",
    AgendaView.MONTH: "Mês",
}

_FILTER_BUTTONS = {
    StatusFilter.ALL: "Todos",
    StatusFilter.CONFIRMED: "Confirmados",
    StatusFilter.CANCELLED: "Cancelados",
    StatusFilter.COMPLETED: "Concluídos",
}


def get_admin_agenda_keyboard(
    appointments: Sequence[Appointment],
    view: AgendaView,
    status_filter: StatusFilter,
) -> InlineKeyboardMarkup:
    """Period and status switches plus complete/cancel buttons for confirmed rows."""
    builder = InlineKeyboardBuilder()

    for appointment in appointments:
        if appointment.status != AppointmentStatus.CONFIRMED.value:
            continue
        label = f"{format_date_short(appointment.appointment_date)} {appointment.appointment_time}"
        builder.row(
            InlineKeyboardButton(
                text=f"✅ {label}", callback_data=f"admin_complete_{appointment.id}"
            ),
            InlineKeyboardButton(
                text=f"❌ {label}", callback_data=f"admin_cancel_{appointment.id}"
            ),
        )

    builder.row(
        *[
            InlineKeyboardButton(
                text=("• " if v == view else "") + text,
                callback_data=f"agenda:{v.value}:{status_filter.value}",
            )
            for v, text in _VIEW_BUTTONS.items()
        ]
    )
    builder.row(
        *[
            InlineKeyboardButton(
                text=("• " if f == status_filter else "") + text,
                callback_data=f"agenda:{view.value}:{f.value}",
            )
            for f, text in _FILTER_BUTTONS.items()
        ]
    )

    return builder.as_markup()


def get_admin_blocks_keyboard(blocks: List[BlockedSlot]) -> InlineKeyboardMarkup:
    """One delete button per block."""
    builder = InlineKeyboardBuilder()

    for block in blocks:
        when = format_date_br(block.blocked_date)
        when += " (dia todo)" if block.full_day else f" {block.blocked_time}"
        builder.row(
            InlineKeyboardButton(
                text=f"🗑 {when}", callback_data=f"admin_unblock_{block.id}"
            )
        )

    return builder.as_markup()

"""
Bot handlers for the nail salon booking bot.
Handles client interactions: booking flow and the "my appointments" area.
"""

import logging
from datetime import date
from html import escape
from typing import Optional, Sequence

from aiogram import Router
from aiogram.filters import Command, ExceptionTypeFilter, StateFilter
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, ErrorEvent, InlineKeyboardMarkup, Message

from booking.agenda import STATUS_LABELS
from booking.availability import is_date_bookable, upcoming_bookable_dates
from booking.draft import BookingDraft, BookingStep
from booking.service import (
    cancel_client_appointment,
    confirm_booking,
    load_slot_choices,
    lookup_appointments,
)
from bot.keyboards import (
    get_back_to_menu_keyboard,
    get_client_appointments_keyboard,
    get_dates_keyboard,
    get_identity_keyboard,
    get_main_menu_keyboard,
    get_review_keyboard,
    get_services_keyboard,
    get_times_keyboard,
)
from bot.states import BookingStates, ClientAreaStates
from config import settings
from db import get_db_client
from models.appointment import Appointment
from utils.constants import (
    APPOINTMENT_ID_DISPLAY_LENGTH,
    APPOINTMENTS_DISPLAY_LIMIT,
    CPF_LENGTH,
    DATES_DISPLAY_LIMIT,
)
from utils.datetime_utils import parse_user_date, salon_today
from utils.exceptions import (
    AppointmentNotFoundError,
    DatabaseError,
    InvalidTransitionError,
    SlotConflictError,
    ValidationError,
)
from utils.formatting import (
    format_cpf,
    format_date_br,
    format_date_long,
    format_duration,
    format_phone,
    format_price,
)
from utils.validation import is_valid_phone, strip_digits

logger = logging.getLogger(__name__)

router = Router()

DRAFT_KEY = "draft"

WELCOME_TEXT = "💅 Bem-vinda ao nosso estúdio de unhas!\n\nEscolha uma opção:"


# ========== Draft storage ==========


async def _load_draft(state: FSMContext) -> BookingDraft:
    data = await state.get_data()
    return BookingDraft.from_state(data.get(DRAFT_KEY))


async def _save_draft(state: FSMContext, draft: BookingDraft) -> None:
    await state.update_data(**{DRAFT_KEY: draft.to_state()})


async def _reply(
    message: Message,
    text: str,
    reply_markup: Optional[InlineKeyboardMarkup] = None,
    edit: bool = False,
) -> None:
    """Edit the bot's own message (callbacks) or send a new one (typed input)."""
    if edit:
        await message.edit_text(text, reply_markup=reply_markup)
    else:
        await message.answer(text, reply_markup=reply_markup)


# ========== Rendering ==========


def render_summary(draft: BookingDraft) -> str:
    """Review screen shown before the client confirms."""
    service = draft.service
    return (
        "📋 <b>Resumo do agendamento</b>\n\n"
        f"Serviço: {escape(service.name)}\n"
        f"Valor: {format_price(service.price)}\n"
        f"Duração: {format_duration(service.duration_minutes)}\n"
        f"Data: {format_date_long(draft.booking_date)}\n"
        f"Horário: {draft.booking_time}\n\n"
        f"Nome: {escape(draft.name)}\n"
        f"Telefone: {format_phone(draft.phone)}\n"
        f"CPF: {format_cpf(draft.cpf)}\n\n"
        "Confirma o agendamento?"
    )


def render_confirmation(draft: BookingDraft) -> str:
    code = (draft.appointment_id or "")[:APPOINTMENT_ID_DISPLAY_LENGTH]
    return (
        "✅ <b>Agendamento confirmado!</b>\n\n"
        f"{escape(draft.service.name)}\n"
        f"{format_date_long(draft.booking_date)} às {draft.booking_time}\n\n"
        f"Código: <code>{code}</code>\n\n"
        "Para consultar ou cancelar, use \"Meus agendamentos\" com seu CPF e telefone."
    )


def render_client_appointments(appointments: Sequence[Appointment]) -> str:
    lines = ["📋 <b>Seus agendamentos</b>\n"]
    for appointment in appointments[:APPOINTMENTS_DISPLAY_LIMIT]:
        service_name = appointment.service.name if appointment.service else "Serviço"
        status = STATUS_LABELS.get(appointment.status, appointment.status)
        lines.append(
            f"• {format_date_br(appointment.appointment_date)} {appointment.appointment_time} - "
            f"{escape(service_name)} ({status})"
        )
    return "\n".join(lines)


# ========== Start Command & Main Menu ==========


@router.message(Command("start"))
async def cmd_start(message: Message, state: FSMContext):
    """Handle /start command."""
    await state.clear()
    await message.answer(WELCOME_TEXT, reply_markup=get_main_menu_keyboard())


@router.callback_query(lambda c: c.data == "main_menu")
async def show_main_menu(callback: CallbackQuery, state: FSMContext):
    """Show main menu."""
    await state.clear()
    await callback.message.edit_text(WELCOME_TEXT, reply_markup=get_main_menu_keyboard())
    await callback.answer()


# ========== Booking Flow ==========


async def _offer_services(message: Message, edit: bool = True) -> bool:
    db = get_db_client()
    services = await db.get_active_services()

    if not services:
        await _reply(
            message,
            "😔 Nenhum serviço disponível no momento.",
            get_back_to_menu_keyboard(),
            edit,
        )
        return False

    await _reply(
        message,
        "💅 <b>Agendar horário</b>\n\nEscolha o serviço:",
        get_services_keyboard(services),
        edit,
    )
    return True


async def _offer_dates(message: Message, draft: BookingDraft, edit: bool = True) -> None:
    db = get_db_client()
    today = salon_today()
    blocked = await db.get_fully_blocked_dates(today)
    dates = list(upcoming_bookable_dates(today, settings.max_lead_days, blocked))

    if not dates:
        await _reply(
            message,
            "😔 Não há datas disponíveis no momento.",
            get_back_to_menu_keyboard(),
            edit,
        )
        return

    await _reply(
        message,
        f"💅 {escape(draft.service.name)}\n\n"
        "📅 Escolha uma data ou digite no formato DD/MM/AAAA:",
        get_dates_keyboard(dates[:DATES_DISPLAY_LIMIT]),
        edit,
    )


async def _offer_times(message: Message, draft: BookingDraft, edit: bool = True) -> None:
    db = get_db_client()
    times = await load_slot_choices(db, draft.booking_date)

    if not times:
        await _reply(
            message,
            f"😔 Nenhum horário disponível em {format_date_br(draft.booking_date)}.\n"
            "Escolha outra data.",
            get_times_keyboard([]),
            edit,
        )
        return

    await _reply(
        message,
        f"📅 {format_date_long(draft.booking_date)}\n\n🕐 Escolha o horário:",
        get_times_keyboard(times),
        edit,
    )


async def _choose_date(message: Message, state: FSMContext, day: date, edit: bool) -> None:
    db = get_db_client()
    today = salon_today()
    blocked = await db.get_fully_blocked_dates(today)

    if not is_date_bookable(day, today, settings.max_lead_days, blocked):
        await message.answer("❌ Data indisponível. Escolha outra data.")
        return

    draft = (await _load_draft(state)).choose_date(day)
    await _save_draft(state, draft)
    await _offer_times(message, draft, edit)


@router.callback_query(lambda c: c.data == "book_appointment")
async def start_booking(callback: CallbackQuery, state: FSMContext):
    """Start booking flow."""
    await state.clear()
    if await _offer_services(callback.message):
        await _save_draft(state, BookingDraft())
        await state.set_state(BookingStates.choosing_service)
    await callback.answer()


@router.callback_query(
    lambda c: c.data.startswith("service_"), StateFilter(BookingStates.choosing_service)
)
async def select_service(callback: CallbackQuery, state: FSMContext):
    """Handle service selection."""
    service_id = callback.data.split("_", 1)[1]

    db = get_db_client()
    service = await db.get_service_by_id(service_id)
    if not service or not service.active:
        await callback.answer("Serviço indisponível", show_alert=True)
        return

    draft = (await _load_draft(state)).select_service(service).advance()
    await _save_draft(state, draft)
    await state.set_state(BookingStates.choosing_slot)

    await _offer_dates(callback.message, draft)
    await callback.answer()


@router.callback_query(
    lambda c: c.data.startswith("date_"), StateFilter(BookingStates.choosing_slot)
)
async def select_date(callback: CallbackQuery, state: FSMContext):
    """Handle date button."""
    try:
        day = date.fromisoformat(callback.data.split("_", 1)[1])
    except ValueError:
        await callback.answer("Data inválida", show_alert=True)
        return

    await _choose_date(callback.message, state, day, edit=True)
    await callback.answer()


@router.message(StateFilter(BookingStates.choosing_slot))
async def typed_date(message: Message, state: FSMContext):
    """Handle a date typed instead of picked."""
    day = parse_user_date(message.text or "")
    if day is None:
        await message.answer("❌ Data inválida. Use o formato DD/MM/AAAA.")
        return

    await _choose_date(message, state, day, edit=False)


@router.callback_query(lambda c: c.data == "change_date", StateFilter(BookingStates.choosing_slot))
async def change_date(callback: CallbackQuery, state: FSMContext):
    draft = await _load_draft(state)
    await _offer_dates(callback.message, draft)
    await callback.answer()


@router.callback_query(
    lambda c: c.data.startswith("time_"), StateFilter(BookingStates.choosing_slot)
)
async def select_time(callback: CallbackQuery, state: FSMContext):
    """Handle time selection."""
    value = callback.data.split("_", 1)[1]
    draft = await _load_draft(state)

    if draft.booking_date is None:
        await callback.answer("Selecione uma data primeiro.", show_alert=True)
        return

    # The keyboard may be stale; check against what is free now
    db = get_db_client()
    if value not in await load_slot_choices(db, draft.booking_date):
        await callback.answer("Este horário não está mais disponível.", show_alert=True)
        await _offer_times(callback.message, draft)
        return

    try:
        draft = draft.choose_time(value).advance()
    except ValidationError as e:
        await callback.answer(e.reason, show_alert=True)
        return

    await _save_draft(state, draft)
    await state.set_state(BookingStates.entering_name)
    await callback.message.edit_text(
        f"📅 {format_date_long(draft.booking_date)} às {draft.booking_time}\n\n"
        "👤 Informe seu nome completo:",
        reply_markup=get_identity_keyboard(),
    )
    await callback.answer()


@router.message(StateFilter(BookingStates.entering_name))
async def enter_name(message: Message, state: FSMContext):
    draft = (await _load_draft(state)).set_name(message.text or "")
    if not draft.name:
        await message.answer("Informe seu nome.")
        return

    await _save_draft(state, draft)
    await state.set_state(BookingStates.entering_phone)
    await message.answer(
        "📱 Informe seu telefone com DDD:", reply_markup=get_identity_keyboard()
    )


@router.message(StateFilter(BookingStates.entering_phone))
async def enter_phone(message: Message, state: FSMContext):
    draft = (await _load_draft(state)).set_phone(message.text or "")
    if not is_valid_phone(draft.phone):
        await message.answer("Telefone inválido.")
        return

    await _save_draft(state, draft)
    await state.set_state(BookingStates.entering_cpf)
    await message.answer(
        f"📱 {format_phone(draft.phone)}\n\n🪪 Agora informe seu CPF:",
        reply_markup=get_identity_keyboard(),
    )


@router.message(StateFilter(BookingStates.entering_cpf))
async def enter_cpf(message: Message, state: FSMContext):
    draft = (await _load_draft(state)).set_cpf(message.text or "")
    try:
        draft = draft.advance()
    except ValidationError as e:
        await message.answer(e.reason)
        return

    await _save_draft(state, draft)
    await state.set_state(BookingStates.reviewing)
    await message.answer(render_summary(draft), reply_markup=get_review_keyboard())


@router.callback_query(lambda c: c.data == "booking_back")
async def go_back(callback: CallbackQuery, state: FSMContext):
    """Step back in the booking flow."""
    draft = await _load_draft(state)
    try:
        draft = draft.back()
    except InvalidTransitionError:
        await show_main_menu(callback, state)
        return

    await _save_draft(state, draft)

    if draft.step == BookingStep.CHOOSING_SERVICE:
        await state.set_state(BookingStates.choosing_service)
        await _offer_services(callback.message)
    elif draft.step == BookingStep.CHOOSING_SLOT:
        await state.set_state(BookingStates.choosing_slot)
        await _offer_dates(callback.message, draft)
    else:
        await state.set_state(BookingStates.entering_name)
        await callback.message.edit_text(
            "👤 Informe seu nome completo:", reply_markup=get_identity_keyboard()
        )
    await callback.answer()


@router.callback_query(lambda c: c.data == "confirm_booking", StateFilter(BookingStates.reviewing))
async def handle_confirm_booking(callback: CallbackQuery, state: FSMContext):
    """Store the reviewed booking."""
    draft = await _load_draft(state)
    db = get_db_client()

    try:
        draft = await confirm_booking(db, draft)
    except SlotConflictError:
        draft = draft.back_to_slot()
        await _save_draft(state, draft)
        await state.set_state(BookingStates.choosing_slot)
        await callback.answer("Este horário já está reservado.", show_alert=True)
        await _offer_times(callback.message, draft)
        return
    except ValidationError as e:
        await callback.answer(e.reason, show_alert=True)
        return
    except DatabaseError as e:
        logger.error(f"Failed to confirm booking: {e}", exc_info=True)
        await callback.answer("Erro ao agendar. Tente novamente.", show_alert=True)
        return

    await state.clear()
    await callback.message.edit_text(
        render_confirmation(draft), reply_markup=get_back_to_menu_keyboard()
    )
    await callback.answer()


# ========== My Appointments ==========


@router.callback_query(lambda c: c.data == "my_appointments")
async def start_lookup(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await state.set_state(ClientAreaStates.entering_cpf)
    await callback.message.edit_text(
        "📋 <b>Meus agendamentos</b>\n\n🪪 Informe seu CPF:",
        reply_markup=get_back_to_menu_keyboard(),
    )
    await callback.answer()


@router.message(StateFilter(ClientAreaStates.entering_cpf))
async def lookup_cpf(message: Message, state: FSMContext):
    cpf = strip_digits(message.text)
    if len(cpf) != CPF_LENGTH:
        await message.answer("Informe um CPF válido.")
        return

    await state.update_data(lookup_cpf=cpf)
    await state.set_state(ClientAreaStates.entering_phone)
    await message.answer("📱 Agora informe o telefone usado no agendamento:")


@router.message(StateFilter(ClientAreaStates.entering_phone))
async def lookup_phone(message: Message, state: FSMContext):
    data = await state.get_data()
    db = get_db_client()

    try:
        appointments = await lookup_appointments(db, data.get("lookup_cpf", ""), message.text or "")
    except ValidationError as e:
        await message.answer(e.reason)
        return
    except DatabaseError as e:
        logger.error(f"Client lookup failed: {e}", exc_info=True)
        await message.answer(
            "Erro ao buscar agendamentos. Tente novamente.",
            reply_markup=get_back_to_menu_keyboard(),
        )
        return

    if not appointments:
        await state.clear()
        await message.answer(
            "Nenhum agendamento encontrado.\n"
            "Verifique se o CPF e o telefone estão corretos.",
            reply_markup=get_back_to_menu_keyboard(),
        )
        return

    await state.update_data(lookup_client_id=appointments[0].client_id)
    await state.set_state(ClientAreaStates.viewing)
    await message.answer(
        render_client_appointments(appointments),
        reply_markup=get_client_appointments_keyboard(appointments),
    )


@router.callback_query(
    lambda c: c.data.startswith("client_cancel_"), StateFilter(ClientAreaStates.viewing)
)
async def client_cancel(callback: CallbackQuery, state: FSMContext):
    """Cancel one of the client's confirmed appointments."""
    appointment_id = callback.data[len("client_cancel_"):]
    client_id = (await state.get_data()).get("lookup_client_id")
    db = get_db_client()

    try:
        await cancel_client_appointment(db, appointment_id, client_id)
    except AppointmentNotFoundError:
        await callback.answer("Este agendamento não pode ser cancelado.", show_alert=True)
        return
    except DatabaseError as e:
        logger.error(f"Failed to cancel appointment {appointment_id}: {e}", exc_info=True)
        await callback.answer("Erro ao cancelar. Tente novamente.", show_alert=True)
        return

    appointments = await db.get_client_appointments(client_id)
    await callback.message.edit_text(
        render_client_appointments(appointments),
        reply_markup=get_client_appointments_keyboard(appointments),
    )
    await callback.answer("Agendamento cancelado.")


# ========== About ==========


@router.callback_query(lambda c: c.data == "about")
async def show_about(callback: CallbackQuery):
    """Show services and opening hours."""
    db = get_db_client()
    services = await db.get_active_services()

    lines = ["ℹ️ <b>Serviços e preços</b>\n"]
    for service in services:
        lines.append(
            f"• {escape(service.name)} - {format_price(service.price)} "
            f"({format_duration(service.duration_minutes)})"
        )
    lines.append("\n🕐 Segunda a sábado, das 08h às 18h (almoço às 12h).")

    await callback.message.edit_text(
        "\n".join(lines),
        reply_markup=get_back_to_menu_keyboard(),
    )
    await callback.answer()


# ========== Store Failures ==========

STORE_ERROR_TEXT = "Erro ao carregar os dados. Tente novamente."


@router.errors(ExceptionTypeFilter(DatabaseError))
async def handle_store_error(event: ErrorEvent):
    """
    Answer any handler whose store call failed.

    Errors propagate through every router included in the dispatcher, so
    this also covers the admin commands. The conversation state is left
    as it was; the user can press the same button again.
    """
    logger.error(f"Store failure: {event.exception}", exc_info=event.exception)

    update = event.update
    if update.callback_query:
        await update.callback_query.answer(STORE_ERROR_TEXT, show_alert=True)
    elif update.message:
        await update.message.answer(STORE_ERROR_TEXT, reply_markup=get_back_to_menu_keyboard())
    return True


def register_handlers(dp) -> None:
    """Register all handlers with dispatcher."""
    dp.include_router(router)

"""
Admin panel handlers: agenda, appointment status changes and schedule blocks.
Accessible only to configured admin users holding a valid Supabase session.
"""

import asyncio
import logging
from html import escape
from typing import Optional, Sequence, Tuple

from aiogram import Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from pydantic import ValidationError as PydanticValidationError

from auth import AdminSession, SessionProvider, get_session_provider
from booking.agenda import (
    STATUS_LABELS,
    VIEW_LABELS,
    AgendaSummary,
    AgendaView,
    StatusFilter,
    filter_by_status,
    period_bounds,
    summarize,
)
from booking.service import set_appointment_status
from bot.keyboards import get_admin_agenda_keyboard, get_admin_blocks_keyboard
from config import settings
from db import get_admin_db_client
from models.appointment import Appointment, AppointmentStatus
from models.blocked_slot import BlockedSlotCreate
from utils.constants import AGENDA_DISPLAY_LIMIT, MAX_BLOCK_REASON_LENGTH, TIME_SLOTS
from utils.datetime_utils import normalize_time, parse_user_date, salon_today
from utils.exceptions import AppointmentNotFoundError, AuthenticationError, DatabaseError
from utils.formatting import format_date_br, format_date_short, format_phone
from utils.validation import sanitize_text, validate_email

logger = logging.getLogger(__name__)

admin_router = Router()


def is_admin_user(telegram_id: int) -> bool:
    """Check if user is admin."""
    return settings.is_admin(telegram_id)


async def current_session(provider: SessionProvider) -> Optional[AdminSession]:
    # get_session round-trips to the auth server
    return await asyncio.to_thread(provider.get_session)


async def has_admin_access(telegram_id: int) -> bool:
    """Admin Telegram account and a live Supabase session of its own."""
    if not is_admin_user(telegram_id):
        return False
    return await current_session(get_session_provider(telegram_id)) is not None


async def require_admin(message: Message) -> bool:
    """Check admin access and send error if not allowed."""
    if not is_admin_user(message.from_user.id):
        await message.answer("❌ Acesso negado. Comando exclusivo da administração.")
        return False
    if await current_session(get_session_provider(message.from_user.id)) is None:
        await message.answer("🔒 Sessão expirada. Entre com /admin_login email senha")
        return False
    return True


def log_session_change(event: str, session) -> None:
    """Session listener: sign-outs and token refreshes end up in the log."""
    if session is None:
        logger.warning(f"Admin session ended ({event})")
    else:
        logger.info(f"Admin session {event}: {session.email}")


# ========== Session ==========


@admin_router.message(Command("admin_login"))
async def cmd_admin_login(message: Message, command: CommandObject):
    """Sign in: /admin_login email senha"""
    if not is_admin_user(message.from_user.id):
        await message.answer("❌ Acesso negado. Comando exclusivo da administração.")
        return

    parts = (command.args or "").split()

    # The message holds a password
    try:
        await message.delete()
    except TelegramBadRequest as e:
        logger.warning(f"Could not delete login message: {e}")

    if len(parts) != 2 or not validate_email(parts[0]):
        await message.answer("Uso: /admin_login email senha")
        return

    provider = get_session_provider(message.from_user.id)
    try:
        session = await asyncio.to_thread(provider.sign_in, parts[0], parts[1])
    except AuthenticationError as e:
        await message.answer(f"❌ {e}")
        return

    await message.answer(
        f"✅ Sessão iniciada como {escape(session.email or '')}.\nUse /admin para ver os comandos."
    )


@admin_router.message(Command("admin_logout"))
async def cmd_admin_logout(message: Message):
    if not is_admin_user(message.from_user.id):
        return

    try:
        await asyncio.to_thread(get_session_provider(message.from_user.id).sign_out)
    except AuthenticationError as e:
        await message.answer(f"❌ {e}")
        return

    await message.answer("👋 Sessão encerrada.")


# ========== Admin Menu ==========


@admin_router.message(Command("admin"))
async def cmd_admin(message: Message):
    """Admin panel entry point."""
    if not await require_admin(message):
        return

    admin_text = (
        "🔐 <b>Painel administrativo</b>\n\n"
        "Comandos disponíveis:\n"
        "• /admin_agenda [day|week|month] [all|confirmed|cancelled|completed]\n"
        "• /admin_block AAAA-MM-DD [HH:MM] [motivo] - Bloquear dia ou horário\n"
        "• /admin_blocks - Ver e remover bloqueios\n"
        "• /admin_logout - Encerrar sessão"
    )

    await message.answer(admin_text)


# ========== Agenda ==========


def parse_agenda_args(args: Optional[str]) -> Tuple[AgendaView, StatusFilter]:
    """Read "[view] [status]" in any order; unknown words are ignored."""
    view, status_filter = AgendaView.DAY, StatusFilter.ALL
    for word in (args or "").lower().split():
        if word in {v.value for v in AgendaView}:
            view = AgendaView(word)
        elif word in {f.value for f in StatusFilter}:
            status_filter = StatusFilter(word)
    return view, status_filter


def render_agenda(
    appointments: Sequence[Appointment],
    summary: AgendaSummary,
    status_filter: StatusFilter,
) -> str:
    """Agenda text: header counts then one line per appointment."""
    if summary.start_date == summary.end_date:
        period = format_date_br(summary.start_date)
    else:
        period = f"{format_date_br(summary.start_date)} a {format_date_br(summary.end_date)}"

    lines = [
        f"📅 <b>Agenda - {VIEW_LABELS[summary.view]}</b> ({period})",
        f"Confirmados hoje: {summary.confirmed_today}",
        f"Total no período: {summary.total_in_period}",
        "",
    ]

    shown = filter_by_status(appointments, status_filter)
    if not shown:
        lines.append("Nenhum agendamento.")
    for appointment in shown[:AGENDA_DISPLAY_LIMIT]:
        client = appointment.client
        service_name = appointment.service.name if appointment.service else "-"
        client_text = escape(client.name) if client else "-"
        if client and client.phone:
            client_text += f" {format_phone(client.phone)}"
        lines.append(
            f"• {format_date_short(appointment.appointment_date)} {appointment.appointment_time} "
            f"{escape(service_name)} - {client_text} "
            f"[{STATUS_LABELS.get(appointment.status, appointment.status)}]"
        )
    if len(shown) > AGENDA_DISPLAY_LIMIT:
        lines.append(f"... e mais {len(shown) - AGENDA_DISPLAY_LIMIT}")

    return "\n".join(lines)


async def _build_agenda(db, view: AgendaView, status_filter: StatusFilter):
    today = salon_today()
    start, end = period_bounds(view, today)
    appointments = await db.get_appointments_between(start, end)
    summary = summarize(appointments, view, today, today)
    shown = filter_by_status(appointments, status_filter)[:AGENDA_DISPLAY_LIMIT]
    return (
        render_agenda(appointments, summary, status_filter),
        get_admin_agenda_keyboard(shown, view, status_filter),
    )


@admin_router.message(Command("admin_agenda"))
async def cmd_admin_agenda(message: Message, command: CommandObject, state: FSMContext):
    """Show the agenda of today, this week or this month."""
    if not await require_admin(message):
        return

    view, status_filter = parse_agenda_args(command.args)
    await state.update_data(agenda_view=view.value, agenda_filter=status_filter.value)

    db = get_admin_db_client(message.from_user.id)
    try:
        text, markup = await _build_agenda(db, view, status_filter)
    except DatabaseError as e:
        logger.error(f"Error loading agenda: {e}", exc_info=True)
        await message.answer("❌ Erro ao carregar a agenda.")
        return

    await message.answer(text, reply_markup=markup)


@admin_router.callback_query(lambda c: c.data.startswith("agenda:"))
async def switch_agenda(callback: CallbackQuery, state: FSMContext):
    """Period/status switch buttons."""
    if not await has_admin_access(callback.from_user.id):
        await callback.answer("Acesso negado", show_alert=True)
        return

    try:
        _, view_value, filter_value = callback.data.split(":")
        view, status_filter = AgendaView(view_value), StatusFilter(filter_value)
    except ValueError:
        await callback.answer("Opção inválida", show_alert=True)
        return

    await state.update_data(agenda_view=view.value, agenda_filter=status_filter.value)
    db = get_admin_db_client(callback.from_user.id)
    text, markup = await _build_agenda(db, view, status_filter)
    await callback.message.edit_text(text, reply_markup=markup)
    await callback.answer()


async def _change_status(callback: CallbackQuery, state: FSMContext, status: AppointmentStatus, prefix: str):
    if not await has_admin_access(callback.from_user.id):
        await callback.answer("Acesso negado", show_alert=True)
        return

    appointment_id = callback.data[len(prefix):]
    db = get_admin_db_client(callback.from_user.id)

    try:
        await set_appointment_status(db, appointment_id, status)
    except AppointmentNotFoundError:
        await callback.answer("Agendamento não está mais confirmado.", show_alert=True)
        return
    except DatabaseError as e:
        logger.error(f"Failed to update appointment {appointment_id}: {e}", exc_info=True)
        await callback.answer("Erro ao atualizar. Tente novamente.", show_alert=True)
        return

    data = await state.get_data()
    view = AgendaView(data.get("agenda_view", AgendaView.DAY.value))
    status_filter = StatusFilter(data.get("agenda_filter", StatusFilter.ALL.value))
    text, markup = await _build_agenda(db, view, status_filter)
    await callback.message.edit_text(text, reply_markup=markup)
    await callback.answer(f"Marcado como {STATUS_LABELS[status.value].lower()}.")


@admin_router.callback_query(lambda c: c.data.startswith("admin_complete_"))
async def complete_appointment(callback: CallbackQuery, state: FSMContext):
    await _change_status(callback, state, AppointmentStatus.COMPLETED, "admin_complete_")


@admin_router.callback_query(lambda c: c.data.startswith("admin_cancel_"))
async def cancel_appointment(callback: CallbackQuery, state: FSMContext):
    await _change_status(callback, state, AppointmentStatus.CANCELLED, "admin_cancel_")


# ========== Schedule Blocks ==========


def parse_block_args(args: Optional[str]) -> BlockedSlotCreate:
    """
    Parse "/admin_block" arguments.

    Format: DATE [HH:MM] [reason...]; without a time the whole day is blocked.

    Raises:
        ValueError: Bad date, or a time outside the daily schedule
    """
    parts = (args or "").split()
    if not parts:
        raise ValueError("Informe a data.")

    day = parse_user_date(parts[0])
    if day is None:
        raise ValueError("Data inválida.")

    blocked_time = None
    rest = parts[1:]
    if rest and ":" in rest[0]:
        blocked_time = normalize_time(rest[0])
        if blocked_time not in TIME_SLOTS:
            raise ValueError(f"Horário fora da agenda: {blocked_time}")
        rest = rest[1:]

    reason = sanitize_text(" ".join(rest), MAX_BLOCK_REASON_LENGTH) or None
    return BlockedSlotCreate(
        blocked_date=day,
        blocked_time=blocked_time,
        full_day=blocked_time is None,
        reason=reason,
    )


@admin_router.message(Command("admin_block"))
async def cmd_admin_block(message: Message, command: CommandObject):
    """Block a whole day or a single time."""
    if not await require_admin(message):
        return

    try:
        block_data = parse_block_args(command.args)
    except (ValueError, PydanticValidationError) as e:
        await message.answer(
            f"❌ {e}\n\nUso: /admin_block AAAA-MM-DD [HH:MM] [motivo]"
        )
        return

    try:
        block = await get_admin_db_client(message.from_user.id).create_blocked_slot(block_data)
    except DatabaseError as e:
        logger.error(f"Error creating block: {e}", exc_info=True)
        await message.answer("❌ Erro ao criar bloqueio.")
        return

    what = "dia inteiro" if block.full_day else block.blocked_time
    await message.answer(f"✅ Bloqueado: {format_date_br(block.blocked_date)} ({what})")


@admin_router.message(Command("admin_blocks"))
async def cmd_admin_blocks(message: Message):
    """List upcoming blocks with delete buttons."""
    if not await require_admin(message):
        return

    try:
        blocks = await get_admin_db_client(message.from_user.id).get_blocked_slots(salon_today())
    except DatabaseError as e:
        logger.error(f"Error loading blocks: {e}", exc_info=True)
        await message.answer("❌ Erro ao carregar bloqueios.")
        return

    if not blocks:
        await message.answer("Nenhum bloqueio futuro.")
        return

    lines = ["🚫 <b>Bloqueios</b>\n"]
    for block in blocks:
        when = "dia inteiro" if block.full_day else block.blocked_time
        reason = f" - {escape(block.reason)}" if block.reason else ""
        lines.append(f"• {format_date_br(block.blocked_date)} ({when}){reason}")

    await message.answer("\n".join(lines), reply_markup=get_admin_blocks_keyboard(blocks))


@admin_router.callback_query(lambda c: c.data.startswith("admin_unblock_"))
async def remove_block(callback: CallbackQuery):
    if not await has_admin_access(callback.from_user.id):
        await callback.answer("Acesso negado", show_alert=True)
        return

    block_id = callback.data[len("admin_unblock_"):]
    try:
        deleted = await get_admin_db_client(callback.from_user.id).delete_blocked_slot(block_id)
    except DatabaseError as e:
        logger.error(f"Error deleting block {block_id}: {e}", exc_info=True)
        await callback.answer("Erro ao remover bloqueio.", show_alert=True)
        return

    if not deleted:
        await callback.answer("Bloqueio não encontrado.", show_alert=True)
        return

    await callback.message.edit_text("✅ Bloqueio removido. Use /admin_blocks para ver a lista.")
    await callback.answer()


def register_admin_handlers(dp) -> None:
    """Register admin handlers with dispatcher."""
    dp.include_router(admin_router)

"""
Display formatting for identity fields, prices, durations and dates.

The CPF and phone masks accept any prefix length so they can be applied
while a value is still being typed.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from utils.constants import CPF_LENGTH, PHONE_MAX_DIGITS
from utils.validation import strip_digits

MONTHS_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)

WEEKDAYS_PT = (
    "seg", "ter", "qua", "qui", "sex", "sáb", "dom",
)


def format_cpf(value: str) -> str:
    """Mask a CPF as 000.000.000-00, progressively for partial input."""
    digits = strip_digits(value)[:CPF_LENGTH]
    if len(digits) <= 3:
        return digits
    if len(digits) <= 6:
        return f"{digits[:3]}.{digits[3:]}"
    if len(digits) <= 9:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:]}"
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_phone(value: str) -> str:
    """Mask a phone as (AA) NNNNN-NNNN, progressively for partial input."""
    digits = strip_digits(value)[:PHONE_MAX_DIGITS]
    if len(digits) <= 2:
        return digits
    if len(digits) <= 7:
        return f"({digits[:2]}) {digits[2:]}"
    return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"


def format_price(value: Union[Decimal, float, int]) -> str:
    """
    Render a price in reais.

    Examples:
        45 -> "R$ 45,00"
        37.5 -> "R$ 37,50"
    """
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"R$ {amount:.2f}".replace(".", ",")


def format_duration(minutes: int) -> str:
    """
    Render a duration in minutes.

    Examples:
        45 -> "45min"
        60 -> "1h"
        90 -> "1h30min"
    """
    hours, mins = divmod(int(minutes), 60)
    if hours == 0:
        return f"{mins}min"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h{mins:02d}min"


def format_date_br(day: date) -> str:
    """dd/mm/yyyy"""
    return day.strftime("%d/%m/%Y")


def format_date_short(day: date) -> str:
    """Short label for date buttons, e.g. "ter 20/10"."""
    return f"{WEEKDAYS_PT[day.weekday()]} {day.strftime('%d/%m')}"


def format_date_long(day: date) -> str:
    """Long Portuguese date, e.g. "20 de outubro de 2026"."""
    return f"{day.day:02d} de {MONTHS_PT[day.month - 1]} de {day.year}"

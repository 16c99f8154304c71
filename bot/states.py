"""
FSM (Finite State Machine) states for bot conversation flow.
"""

from aiogram.fsm.state import State, StatesGroup


class BookingStates(StatesGroup):
    """States for booking flow (identity is asked one field at a time)."""

    choosing_service = State()
    choosing_slot = State()
    entering_name = State()
    entering_phone = State()
    entering_cpf = State()
    reviewing = State()


class ClientAreaStates(StatesGroup):
    """States for the "my appointments" lookup."""

    entering_cpf = State()
    entering_phone = State()
    viewing = State()

"""
Pytest configuration and shared fixtures.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from models.service import Service


@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings for all tests."""
    with patch("config.settings") as mock_settings:
        mock_settings.bot_token = "test_token"
        mock_settings.supabase_url = "https://test.supabase.co"
        mock_settings.supabase_key = "test_key"
        mock_settings.timezone = "America/Sao_Paulo"
        mock_settings.max_lead_days = 30
        mock_settings.log_level = "INFO"
        mock_settings.log_dir = "logs"
        mock_settings.environment = "test"
        mock_settings.host = "0.0.0.0"
        mock_settings.port = 8000
        mock_settings.bot_webhook_url = None
        mock_settings.admin_telegram_ids = None
        yield mock_settings


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table


@pytest.fixture
def manicure():
    return Service(
        id="svc-1",
        name="Manicure",
        price=Decimal("45.00"),
        duration_minutes=60,
    )


@pytest.fixture
def today():
    """A Monday, so tomorrow is bookable and six days later is a Sunday."""
    return date(2026, 10, 19)


@pytest.fixture
def mock_db():
    """Store facade with every coroutine mocked."""
    db = MagicMock()
    for name in (
        "get_active_services",
        "get_service_by_id",
        "get_booked_times",
        "get_blocked_times",
        "get_fully_blocked_dates",
        "get_client_by_cpf",
        "find_client",
        "upsert_client_by_cpf",
        "create_appointment",
        "get_client_appointments",
        "update_appointment_status",
        "get_appointments_between",
        "create_blocked_slot",
        "get_blocked_slots",
        "delete_blocked_slot",
    ):
        setattr(db, name, AsyncMock())
    return db

"""
Application-wide constants.
Centralizes schedule rules, validation limits and display limits.
"""

# Salon schedule: bookable start times for any open day (lunch break at 12:00)
TIME_SLOTS = (
    "08:00", "09:00", "10:00", "11:00",
    "13:00", "14:00", "15:00", "16:00", "17:00",
)
CLOSED_WEEKDAY = 6  # date.weekday(): Sunday
DEFAULT_MAX_LEAD_DAYS = 30

# Identity rules
CPF_LENGTH = 11
PHONE_MAX_DIGITS = 11  # 2-digit area code + 9-digit mobile
PHONE_MIN_DIGITS = 10  # 2-digit area code + 8-digit landline
MAX_NAME_LENGTH = 100
MAX_BLOCK_REASON_LENGTH = 200

# PostgreSQL SQLSTATE raised by the unique index on confirmed
# (appointment_date, appointment_time). The only store error treated as a
# slot conflict.
UNIQUE_VIOLATION_CODE = "23505"

# Display formatting
APPOINTMENT_ID_DISPLAY_LENGTH = 8
DATES_DISPLAY_LIMIT = 12  # Date buttons in the booking keyboard
APPOINTMENTS_DISPLAY_LIMIT = 10  # Client area list
AGENDA_DISPLAY_LIMIT = 30  # Admin agenda list

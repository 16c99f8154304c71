"""
Unit tests for identity validation.
"""

import pytest

from utils.validation import (
    is_valid_phone,
    sanitize_text,
    strip_digits,
    validate_cpf,
    validate_email,
)


class TestCpf:
    @pytest.mark.parametrize("cpf", ["11144477735", "111.444.777-35", "52998224725"])
    def test_valid(self, cpf):
        assert validate_cpf(cpf) is True

    @pytest.mark.parametrize(
        "cpf",
        [
            "11144477734",  # wrong second check digit
            "11144477725",  # wrong first check digit
            "11111111111",  # all digits identical
            "00000000000",
            "1114447773",  # too short
            "111444777350",  # too long
            "",
            None,
        ],
    )
    def test_invalid(self, cpf):
        assert validate_cpf(cpf) is False

    def test_separators_ignored(self):
        assert validate_cpf("111 444 777 35") == validate_cpf("11144477735")


class TestPhone:
    def test_mobile_and_landline(self):
        assert is_valid_phone("(11) 99999-8888") is True
        assert is_valid_phone("1133334444") is True

    def test_too_short(self):
        assert is_valid_phone("119999888") is False
        assert is_valid_phone("") is False
        assert is_valid_phone(None) is False


def test_strip_digits():
    assert strip_digits("(11) 99999-8888") == "11999998888"
    assert strip_digits(None) == ""


def test_sanitize_text():
    assert sanitize_text("  Maria\x00 da Silva  ") == "Maria da Silva"
    assert sanitize_text("a" * 150, max_length=100) == "a" * 100
    assert sanitize_text(None) == ""


def test_validate_email():
    assert validate_email("admin@salao.com.br") is True
    assert validate_email("not-an-email") is False
    assert validate_email("") is False

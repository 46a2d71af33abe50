from __future__ import annotations

import pytest

from honorarios.utils.validators import (
    nit_check_digit,
    validate_date,
    validate_monetary,
    validate_nit,
    validate_per_mille,
    validate_percent,
    validate_slug,
)


class TestValidateMonetary:
    def test_valid(self):
        assert validate_monetary("5000000") == "5000000"

    def test_thousands_separator(self):
        assert validate_monetary("5.000.000") == "5000000"

    def test_currency_sign_and_spaces(self):
        assert validate_monetary(" $ 1.500.000 ") == "1500000"

    def test_decimal_point(self):
        assert validate_monetary("5000000.50") == "5000000.50"

    def test_short_decimal_is_not_a_separator(self):
        assert validate_monetary("1.5") == "1.5"

    def test_nan_raises(self):
        with pytest.raises(ValueError, match="invalido"):
            validate_monetary("NaN")

    def test_infinity_raises(self):
        with pytest.raises(ValueError, match="invalido"):
            validate_monetary("Infinity")

    def test_non_numeric_raises(self):
        with pytest.raises(ValueError, match="invalido"):
            validate_monetary("abc")

    def test_zero_raises(self):
        with pytest.raises(ValueError, match="positivo"):
            validate_monetary("0")

    def test_above_max_raises(self):
        with pytest.raises(ValueError, match="maximo"):
            validate_monetary("1e29")

    def test_max_is_accepted(self):
        assert validate_monetary("1.000.000.000.000.000") == "1000000000000000"

    def test_negative_raises(self):
        with pytest.raises(ValueError, match="positivo"):
            validate_monetary("-5")


class TestValidateDate:
    def test_valid(self):
        assert validate_date("2026-12-30") == "2026-12-30"

    def test_invalid_raises(self):
        with pytest.raises(ValueError, match="invalida"):
            validate_date("not-a-date")

    def test_invalid_month(self):
        with pytest.raises(ValueError, match="invalida"):
            validate_date("2026-13-01")

    def test_leap_year(self):
        assert validate_date("2028-02-29") == "2028-02-29"


class TestValidatePercent:
    def test_valid(self):
        assert validate_percent("15") == "15.00"

    def test_bounds(self):
        assert validate_percent("0") == "0.00"
        assert validate_percent("100") == "100.00"

    def test_above_hundred(self):
        with pytest.raises(ValueError, match="entre"):
            validate_percent("100.01")

    def test_non_numeric(self):
        with pytest.raises(ValueError, match="invalido"):
            validate_percent("x")


class TestValidatePerMille:
    def test_valid(self):
        assert validate_per_mille("9.66") == "9.66"

    def test_comma_decimal(self):
        assert validate_per_mille("9,66") == "9.66"

    def test_normalizes(self):
        assert validate_per_mille("10") == "10"
        assert validate_per_mille("7.000") == "7"

    def test_out_of_range(self):
        with pytest.raises(ValueError, match="entre 0 y 100"):
            validate_per_mille("101")
        with pytest.raises(ValueError, match="entre 0 y 100"):
            validate_per_mille("-1")

    def test_non_numeric(self):
        with pytest.raises(ValueError, match="invalida"):
            validate_per_mille("mucho")


class TestValidateNit:
    def test_with_check_digit(self):
        assert validate_nit("800197268-4") == "800197268-4"

    def test_dots_ignored(self):
        assert validate_nit("900.123.456-8") == "900123456-8"

    def test_without_check_digit(self):
        assert validate_nit("1020304050") == "1020304050"

    def test_wrong_check_digit(self):
        with pytest.raises(ValueError, match="verificacion incorrecto"):
            validate_nit("800197268-5")

    @pytest.mark.parametrize("value", ["", "12345", "ABC123456", "800197268-45", "1234567890123456"])
    def test_malformed(self, value):
        with pytest.raises(ValueError, match="digitos"):
            validate_nit(value)

    def test_check_digit(self):
        assert nit_check_digit("800197268") == 4
        assert nit_check_digit("900123456") == 8


class TestValidateSlug:
    @pytest.mark.parametrize("value", ["acme", "mi_cliente-2", "3m"])
    def test_valid(self, value):
        assert validate_slug(value) == value

    @pytest.mark.parametrize("value", ["", "Acme", "-acme", "con espacio", "acme.yaml"])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="minusculas"):
            validate_slug(value)

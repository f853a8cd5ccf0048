import pytest

from cvatmasks.pipeline.coords import parse_float, parse_int, parse_points
from cvatmasks.pipeline.errors import FormatError


class TestParsePoints:
    def test_pairs_in_order(self):
        assert parse_points("10,20;30,40") == [(10, 20), (30, 40)]

    def test_empty_and_missing(self):
        assert parse_points("") == []
        assert parse_points(None) == []

    def test_trailing_separator_tolerated(self):
        assert parse_points("1,2;3,4;") == [(1, 2), (3, 4)]

    def test_fractions_truncate_toward_zero(self):
        assert parse_points("10.9,20.2;-3.7,4.99") == [(10, 20), (-3, 4)]

    def test_segment_without_comma_rejected(self):
        with pytest.raises(FormatError):
            parse_points("1,2;34;5,6")

    def test_non_numeric_rejected(self):
        with pytest.raises(FormatError):
            parse_points("1,a")

    def test_extra_comma_rejected(self):
        with pytest.raises(FormatError):
            parse_points("1,2,3")


class TestNumbers:
    def test_parse_int_truncates(self):
        assert parse_int("12.75") == 12
        assert parse_int(" 7 ") == 7

    def test_missing_value(self):
        with pytest.raises(FormatError, match="missing numeric attribute 'xtl'"):
            parse_int(None, name="xtl")

    @pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "", "1e"])
    def test_rejects_non_finite_or_garbage(self, raw):
        with pytest.raises(FormatError):
            parse_float(raw)

    @pytest.mark.parametrize("raw", ["3000000000", "-2147483649", "99999999999.5"])
    def test_parse_int_out_of_range(self, raw):
        with pytest.raises(FormatError, match="out of range for 'x'"):
            parse_int(raw, name="x")

    def test_int32_bounds_accepted(self):
        assert parse_int("2147483647") == 2**31 - 1
        assert parse_int("-2147483648") == -(2**31)

    def test_out_of_range_point_rejected(self):
        with pytest.raises(FormatError, match="out of range"):
            parse_points("0,0;99999999999,0;0,3")

"""Tests for the Deci value type."""

import pickle
from decimal import ROUND_HALF_UP, Decimal

import pytest

from deci import (
    DEFAULT_CONTEXT,
    Deci,
    DivisionByZero,
    NumericContext,
    ParseError,
    RoundingMode,
    eq,
    or_zero,
    sum_of,
    value_of,
)
from tests.helpers import CTX1_DOWN, CTX4, CTX40


class TestDeciConstruction:
    """Tests for Deci construction."""

    def test_from_str(self):
        """Deci can be constructed from decimal text."""
        d = Deci("-1.50")
        assert d.unscaled_value == -150
        assert d.scale == 2
        assert d.precision == 3
        assert d.sign == -1

    def test_from_int(self):
        """Deci can be constructed from int."""
        assert Deci(10**30).unscaled_value == 10**30
        assert Deci(10**30).scale == 0

    def test_from_decimal(self):
        """Deci can be constructed from Decimal, keeping its scale."""
        assert Deci(Decimal("1.20")).scale == 2

    def test_from_deci_renormalizes(self):
        """Wrapping a Deci normalizes its value under the new context."""
        assert str(Deci(Deci("1.23456"), CTX4)) == "1.2346"

    def test_default_context(self):
        """Without a context the default context is attached."""
        assert Deci("1.5").context is DEFAULT_CONTEXT

    def test_normalizes_under_context(self):
        """Construction keeps at most the context scale."""
        assert str(Deci("1.192", CTX1_DOWN)) == "1.1"
        assert str(Deci("123.123456", CTX4)) == "123.1235"

    def test_invalid_text_raises(self):
        """Malformed text raises ParseError."""
        with pytest.raises(ParseError):
            Deci("abc")

    def test_non_finite_decimal_raises(self):
        """NaN and infinities are rejected."""
        with pytest.raises(ParseError):
            Deci(Decimal("Infinity"))
        with pytest.raises(ParseError):
            Deci(Decimal("NaN"))

    def test_invalid_type_raises(self):
        """Deci rejects floats, bools and other types."""
        with pytest.raises(TypeError):
            Deci(1.5)  # type: ignore
        with pytest.raises(TypeError):
            Deci(True)  # type: ignore
        with pytest.raises(TypeError):
            Deci(None)  # type: ignore

    def test_immutable(self):
        """Deci attributes cannot be assigned."""
        d = Deci("1.5")
        with pytest.raises(AttributeError):
            d.scale = 3  # type: ignore[misc]
        with pytest.raises(AttributeError):
            d.extra = 1  # type: ignore[attr-defined]


class TestValueOf:
    """Tests for value_of conversion."""

    def test_zero_is_shared(self):
        """Zero in the default context is the shared ZERO."""
        assert value_of(0) is Deci.ZERO
        assert value_of(0, DEFAULT_CONTEXT) is Deci.ZERO
        assert value_of(0, CTX4) is not Deci.ZERO

    def test_supported_types(self):
        """int, str, Decimal and float all convert."""
        assert value_of(2) == Deci(2)
        assert value_of("2") == Deci(2)
        assert value_of(Decimal("2")) == Deci(2)
        assert value_of(2.0) == Deci(2)

    def test_float_uses_shortest_text(self):
        """Floats convert by their shortest textual form."""
        assert value_of(2.2) == Deci("2.2")
        assert str(value_of(0.1)) == "0.1"

    def test_deci_returned_as_is(self):
        """A Deci without a new context is returned unchanged."""
        d = Deci("1.5")
        assert value_of(d) is d

    def test_with_context(self):
        """A given context is attached to the result."""
        assert value_of(2, CTX4).context == CTX4
        assert value_of("2", CTX4).context == CTX4
        assert value_of(2.2, CTX4).context == CTX4
        assert value_of(Deci(2), CTX4).context == CTX4

    def test_invalid_raises(self):
        """Unsupported values raise."""
        with pytest.raises(TypeError):
            value_of(True)
        with pytest.raises(TypeError):
            value_of(object())
        with pytest.raises(ParseError):
            value_of(float("nan"))


class TestDeciEquality:
    """Tests for numeric equality and hashing."""

    def test_scale_insensitive(self):
        """Equal values with different scales are equal."""
        assert Deci(1) == Deci("1.00")
        assert Deci("1.00") == Deci("1.000") / 100000 * 100000

    def test_int_and_decimal(self):
        """Deci equals ints and Decimals numerically."""
        assert Deci("2.00") == 2
        assert 2 == Deci("2.00")
        assert Deci("1.0") == Decimal("1")
        assert Deci("1.5") != 1

    def test_context_ignored(self):
        """Contexts do not take part in equality."""
        assert Deci("1.5", CTX4) == Deci("1.5", CTX40)

    def test_non_finite_decimal_not_equal(self):
        """Comparing with NaN is False."""
        assert (Deci(1) == Decimal("NaN")) is False
        assert Deci(1) != Decimal("NaN")

    def test_other_types_not_equal(self):
        """Strings and floats are not equal to Deci; eq() handles floats."""
        assert Deci(1) != "1"
        assert Deci(1) != 1.0
        assert Deci(1) != None  # noqa: E711

    def test_hash_matches_equality(self):
        """Equal values hash alike, including plain ints."""
        assert hash(Deci("2.2")) == hash(Deci("2.200"))
        assert hash(Deci(2)) == hash(2)
        assert hash(Deci("1200")) == hash(Deci("1.2e3"))
        assert len({Deci("1.0"), Deci(1), 1}) == 1

    def test_hash_is_stable(self):
        """Repeated hashing gives the same value."""
        d = Deci("12.34")
        assert hash(d) == hash(d)

    def test_dict_lookup(self):
        """Deci works as a dict key across scales."""
        table = {Deci(f"{i}.{i}000"): i for i in range(1, 5)}
        assert table[Deci("2.2")] == 2
        assert Deci("3.30") in table


class TestEqHelper:
    """Tests for the eq helper."""

    def test_none_semantics(self):
        """None equals only None."""
        assert eq(None, None)
        assert not eq(None, Deci(1))
        assert not eq(Deci(1), None)

    def test_mixed_types(self):
        """eq compares across Deci, int, Decimal and float."""
        assert eq(Deci("12.2"), Decimal("12.2"))
        assert eq(Deci(1), 1.0)
        assert eq(2.2, Deci("2.20"))
        assert eq(1, 1)
        assert not eq(Deci("1.1"), 1)

    def test_unsupported_raises(self):
        """Unsupported types raise TypeError."""
        with pytest.raises(TypeError):
            eq(Deci(1), "1")  # type: ignore[arg-type]


class TestDeciComparison:
    """Tests for ordering."""

    def test_ordering(self):
        """Deci orders against Deci, int, Decimal and float."""
        assert Deci(2) > 1
        assert Deci(2) >= 2
        assert Deci(2) <= 2
        assert Deci(2) < Deci("2.2")
        assert Decimal("1") < Deci(2)
        assert Deci("2.2") > 2.1
        assert 2.1 < Deci("2.2")

    def test_compare_to(self):
        """compare_to returns -1, 0 or 1."""
        assert Deci("1.10").compare_to(Deci("1.1")) == 0
        assert Deci("1.1").compare_to(2) == -1
        assert Deci("1.1").compare_to(1.0) == 1

    def test_compare_to_invalid_raises(self):
        """compare_to rejects unsupported types."""
        with pytest.raises(TypeError):
            Deci(1).compare_to("x")  # type: ignore[arg-type]

    def test_ordering_invalid_raises(self):
        """Ordering against a string raises TypeError."""
        with pytest.raises(TypeError):
            Deci(1) < "x"  # type: ignore[operator]

    def test_sorting(self):
        """Deci values sort numerically."""
        values = [Deci("1.10"), Deci("-2"), Deci("0.5")]
        assert [str(v) for v in sorted(values)] == ["-2", "0.5", "1.1"]


class TestDeciArithmetic:
    """Tests for arithmetic operators."""

    @pytest.mark.parametrize("num", [5, Decimal(5), Deci(5)], ids=["int", "decimal", "deci"])
    def test_mixed_operands(self, num):
        """Operators accept int, Decimal and Deci on either side."""
        ten = Deci(10)
        assert ten + num == 15
        assert num + ten == 15
        assert ten - num == 5
        assert num - ten == -5
        assert ten * num == 50
        assert num * ten == 50
        assert ten / num == 2
        assert num / ten == Deci("0.5")
        assert ten % num == 0
        assert num % ten == 5

    def test_simple(self):
        """Simple arithmetic is exact."""
        assert Deci("1.2") * 2 - 1 == Deci("1.4")
        assert Deci("0.1") + Deci("0.2") == Deci("0.3")

    def test_remainder(self):
        """Remainder keeps the sign of the dividend."""
        assert Deci("2.5") % Deci("1.2") == Deci("0.1")
        assert Deci(-7) % 3 == -1
        assert Deci(7) % -3 == 1

    def test_unary(self):
        """Negation, plus and abs."""
        d = Deci("1.1")
        assert -d == Deci("-1.1")
        assert +d is d
        assert abs(Deci("-1.1")) == d
        assert abs(d) is d

    def test_unsupported_operand_raises(self):
        """Strings and floats are not arithmetic operands."""
        with pytest.raises(TypeError):
            Deci(1) + "1"  # type: ignore[operator]
        with pytest.raises(TypeError):
            Deci(1) + 1.5  # type: ignore[operator]
        with pytest.raises(TypeError):
            1.5 * Deci(1)  # type: ignore[operator]

    def test_builtin_sum(self):
        """The builtin sum works through reflected addition."""
        assert sum([Deci("1.1"), Deci("2.2")]) == Deci("3.3")

    def test_small_intermediates_survive(self):
        """Chained divisions keep the digits of small intermediates."""
        result = ((1 - Deci(1) / 365) * (1 - Deci(2) / 365)).round(11)
        assert result == Deci("0.99179583412")

    def test_quantized_decimal_loses_intermediates(self):
        """Division quantized to the dividend's scale collapses to 1."""

        def divide(a: Decimal, b: Decimal) -> Decimal:
            return (a / b).quantize(a, rounding=ROUND_HALF_UP)

        one = Decimal(1)
        assert (one - divide(one, Decimal(365))) * (one - divide(Decimal(2), Decimal(365))) == 1

    def test_large_and_small_magnitudes(self):
        """Mixed magnitudes keep enough digits."""
        result = (1 / Deci("1.23e10") * Deci("2.34e-10") * Deci("1e20")).round(11)
        assert result == Deci("1.90243902439")

    def test_percentage(self):
        """A typical business formula."""
        price, quantity, fee = Deci("55.97"), Deci("12.2"), Deci("15.5")
        percent = (price * quantity - fee) * 100 / (price * quantity)
        assert percent.round(2) == Deci("97.73")
        assert percent.round(8) == Deci("97.73004859")


class TestContextPropagation:
    """Tests for which context a result carries."""

    def test_wide_left_context(self):
        """A wide left context keeps more digits."""
        result = Deci("1.2", NumericContext(55)) / Deci(7)
        assert result.context.scale == 55
        assert len(str(result).split(".")[1]) == 55

    def test_left_wins(self):
        """The left operand's context is attached to the result."""
        assert (Deci(5, CTX4) + Deci(1, CTX40)).context == CTX4
        assert (Deci(5, CTX40) / Deci(3, CTX4)).context == CTX40
        assert (Deci(5) * Deci(1, CTX4)).context == DEFAULT_CONTEXT

    def test_reflected_uses_deci_context(self):
        """A promoted int or Decimal left operand takes the Deci's context."""
        assert (10 - Deci(5, CTX4)).context == CTX4
        assert str(1 / Deci(3, CTX4)) == "0.3333"
        assert (Decimal(1) + Deci(5, CTX40)).context == CTX40

    def test_unary_and_round_keep_context(self):
        """Negation and round keep the context."""
        d = Deci("1.23456", CTX40)
        assert (-d).context == CTX40
        assert d.round(2).context == CTX40

    def test_apply_context(self):
        """apply_context re-normalizes under the new context."""
        d = value_of("1.0123456789").apply_context(CTX4)
        assert d.context == CTX4
        assert str(d) == "1.0123"

    def test_apply_same_context_is_identity(self):
        """Applying the attached context returns the same value."""
        d = Deci("1.5", CTX4)
        assert d.apply_context(NumericContext(4, RoundingMode.HALF_UP, 3)) is d


class TestDeciRound:
    """Tests for rounding to a scale."""

    def test_half_up(self):
        """round uses the context rounding mode."""
        assert Deci("1.114").round(2) == Deci("1.11")
        assert str(Deci("1.115").round(2)) == "1.12"
        assert Deci("1.115", NumericContext(20, RoundingMode.DOWN)).round(2) == Deci("1.11")

    def test_keeps_requested_scale(self):
        """The result is stored at exactly the requested scale."""
        assert str(Deci("1.11").round(5).to_decimal()) == "1.11000"
        assert Deci("1.11").round(4).scale == 4

    def test_negative_scale(self):
        """A negative scale rounds to tens and stores scale 0."""
        d = Deci("1234.5").round(-1)
        assert str(d) == "1230"
        assert d.scale == 0

    def test_order_of_rounding(self):
        """Rounding an operand first changes the result."""
        assert (Deci("1.16") - Deci("0.02").round(1)).round(1) == Deci("1.2")
        assert (Deci("1.16") - Deci("0.02")).round(1) == Deci("1.1")

    def test_builtin_round(self):
        """round() without digits gives an int, with digits a Deci."""
        assert round(Deci("2.5")) == 3
        assert isinstance(round(Deci("2.5")), int)
        assert round(Deci("-2.5")) == -3
        assert round(Deci("1.115"), 2) == Deci("1.12")


class TestDeciFormatting:
    """Tests for string conversion."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("-12.0200", "-12.02"),
            ("12.0000", "12"),
            ("1200.0000", "1200"),
            ("12e5", "1200000"),
            ("0.00000000000000000000012", "0.00000000000000000000012"),
            ("0.0", "0.0"),
            ("0", "0"),
            ("-0.000", "0.0"),
        ],
    )
    def test_str(self, text, expected):
        """str() strips trailing zeros and never uses exponents."""
        assert str(Deci(text)) == expected

    def test_str_from_decimal_exponent(self):
        """Positive Decimal exponents print in full."""
        assert str(Deci(Decimal("1.20E+4"))) == "12000"

    def test_repr(self):
        """repr() shows the canonical text."""
        assert repr(Deci("1.50")) == "Deci('1.5')"

    def test_format(self):
        """Format specs are applied to the Decimal value."""
        assert f"{Deci('1.5'):.2f}" == "1.50"
        assert f"{Deci('2.50')}" == "2.5"

    @pytest.mark.parametrize("text", ["1.5", "-0.001", "123456789.987654321", "0.00000000000000000000012"])
    def test_str_round_trip(self, text):
        """Parsing the string form gives an equal value."""
        d = Deci(text)
        assert Deci(str(d)) == d


class TestDeciConversion:
    """Tests for conversion to Python numbers."""

    def test_to_decimal_keeps_scale(self):
        """to_decimal is exact and keeps the stored scale."""
        assert Deci("1.50").to_decimal().as_tuple().exponent == -2

    def test_int_truncates(self):
        """int() truncates toward zero."""
        assert int(Deci("-1.9")) == -1
        assert int(Deci("1.9")) == 1

    def test_float(self):
        """float() gives the nearest float."""
        assert float(Deci("1.5")) == 1.5

    def test_bool(self):
        """Zero is falsy."""
        assert not Deci("0.00")
        assert Deci("0.01")

    def test_pickle(self):
        """Pickling keeps value, scale and context."""
        d = Deci("1.50", CTX4)
        restored = pickle.loads(pickle.dumps(d))
        assert restored == d
        assert restored.scale == 2
        assert restored.context == CTX4


class TestHelpers:
    """Tests for or_zero and sum_of."""

    def test_or_zero(self):
        """or_zero replaces None with zero."""
        d = Deci(1)
        assert or_zero(None) == 0
        assert or_zero(d) is d

    def test_sum_of(self):
        """sum_of adds Deci values."""
        assert sum_of([Deci("1.2"), Deci(1)]) == Deci("2.2")
        assert sum_of([]) is Deci.ZERO

    def test_sum_of_selector(self):
        """sum_of can select values from items."""
        lines = [("a", Deci("1.25")), ("b", Deci("2.75"))]
        assert sum_of(lines, lambda line: line[1]) == 4


class TestLargeValues:
    """Tests for values with more digits than int/str conversion allows."""

    BIG = 10**5000 + 1

    def test_construct_and_str(self):
        """A 5001-digit integer constructs and prints exactly."""
        d = Deci(self.BIG)
        assert d.precision == 5001
        assert str(d) == "1" + "0" * 4999 + "1"

    def test_construct_from_long_text(self):
        """A 5000-character literal parses exactly."""
        d = Deci("1" * 5000)
        assert d == (10**5000 - 1) // 9
        assert Deci(str(d)) == d

    def test_division(self):
        """Dividing a huge value keeps the context scale."""
        result = Deci(self.BIG) / 7
        quotient, remainder = divmod(self.BIG * 10**20, 7)
        assert result.scale == 20
        assert result.unscaled_value == quotient + (1 if 2 * remainder >= 7 else 0)

    def test_hash(self):
        """Huge integral values hash like the int."""
        assert hash(Deci(self.BIG)) == hash(self.BIG)
        assert hash(Deci(10**5000)) == hash(Deci("1e5000"))

    def test_decimal_conversion(self):
        """Huge values convert to Decimal exactly."""
        assert Deci(self.BIG).to_decimal() == Decimal(self.BIG)
        assert Deci(Decimal(self.BIG)) == self.BIG

    def test_product_in_widest_context(self):
        """Squaring a wide value in a scale-2000 context stays exact to 2000 digits."""
        ctx = NumericContext(2000, RoundingMode.HALF_UP, 2000)
        value = Deci("1" * 300 + "." + "1" * 2000, ctx)
        result = value * value
        assert result.scale == 2000
        assert result.precision == 2599
        assert Deci(str(result), ctx) == result

    def test_exponent_out_of_range_raises(self):
        """Literals with an exponent too large to expand raise ParseError."""
        with pytest.raises(ParseError):
            Deci("1e999999999")
        with pytest.raises(ParseError):
            Deci(Decimal("1E-999999999"))


class TestNonFiniteOrdering:
    """Tests for ordering against NaN and infinities."""

    @pytest.mark.parametrize("nan", [float("nan"), Decimal("NaN")], ids=["float", "decimal"])
    def test_nan_is_unordered(self, nan):
        """Every ordering comparison with NaN is False."""
        d = Deci(1)
        assert not d < nan
        assert not d <= nan
        assert not d > nan
        assert not d >= nan
        assert not nan < d

    @pytest.mark.parametrize("inf", [float("inf"), Decimal("Infinity")], ids=["float", "decimal"])
    def test_infinities(self, inf):
        """Every Deci is below +inf and above -inf."""
        d = Deci(10**5000)
        assert d < inf
        assert d <= inf
        assert d > -inf
        assert not d >= inf

    def test_compare_to_rejects_nan(self):
        """compare_to stays strict about non-finite floats."""
        with pytest.raises(ParseError):
            Deci(1).compare_to(float("nan"))
        with pytest.raises(ParseError):
            Deci(1).compare_to(float("inf"))

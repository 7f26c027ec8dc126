from decimal import Decimal

import pytest
from gcodeclean.gcode.parser import GcodeTokenizer, tokenize
from gcodeclean.structure.token import Token, format_number
from gcodeclean.utils.errors import TokenError

pytestmark = [pytest.mark.unit, pytest.mark.gcode]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("G01", "G1"),
        ("x-.5", "X-0.5"),
        ("X+10", "X10"),
        ("F1500.000", "F1500"),
        ("Z-0.000", "Z0"),
        ("G38.2", "G38.2"),
        ("I.25", "I0.25"),
    ],
)
def test_token_canonical_text(text, expected):
    assert str(Token.parse(text)) == expected


def test_token_value_equality():
    assert Token.parse("G01") == Token.parse("G1")
    assert Token.parse("X1.0") == Token.parse("X1")
    assert Token.parse("X1") != Token.parse("Y1")
    assert hash(Token.parse("G01")) == hash(Token.parse("G1"))


@pytest.mark.parametrize("text", ["X", "#1", "G1.2.3", "12"])
def test_token_parse_rejects(text):
    with pytest.raises(TokenError):
        Token.parse(text)


def test_format_number():
    assert format_number(Decimal("100")) == "100"
    assert format_number(Decimal("1.2500")) == "1.25"
    assert format_number(Decimal("-0")) == "0"
    assert format_number(Decimal("1E-4")) == "0.0001"


def test_tokenize_words_and_comments():
    (line,) = tokenize("G1 X10 Y-2.5 (move) ; trailing")

    assert [str(t) for t in line.tokens] == ["G1", "X10", "Y-2.5"]
    assert line.comment == "move trailing"
    assert str(line) == "G1 X10 Y-2.5 (move trailing)"


def test_tokenize_ignores_whitespace_and_case():
    (line,) = tokenize("g1x 10 y2 0")
    assert str(line) == "G1 X10 Y20"


def test_tokenize_numbers_lines_and_skips_blanks():
    lines = list(tokenize("G0 X1\n\n   \nG1 X2\n"))

    assert [line.number for line in lines] == [1, 4]


def test_comment_only_lines_are_kept():
    lines = list(tokenize(["(header)", "()", ";"]))

    assert [line.is_comment for line in lines] == [True, True, True]
    assert str(lines[0]) == "(header)"
    assert str(lines[1]) == "()"


def test_specials():
    percent, block_delete = tokenize(["%", "/G1 X1"])

    assert percent.tokens == (Token.parse("%"),)
    assert block_delete.tokens[0].is_special
    assert str(block_delete) == "/ G1 X1"


def test_malformed_remainder_is_kept_and_flagged():
    tokenizer = GcodeTokenizer()
    (line,) = tokenizer.parse_program("G1 X10 #5=3")

    assert str(line) == "G1 X10 #5=3"
    assert not line.is_valid
    assert line.issues
    assert len(tokenizer.get_errors()) == 1
    assert "Line 1" in tokenizer.get_errors()[0]


def test_retokenizing_joined_text_is_stable():
    source = ["g01 x1.500 y-0.0 f300", "G2 X1 Y1 I.5 J0 (arc)", "M3 S1000 ; spindle (cw)", "N20 G0 Z5"]
    for raw in source:
        (first,) = tokenize([raw])
        (second,) = tokenize([str(first)])
        assert second.tokens == first.tokens
        assert second.comment == first.comment
        assert str(second) == str(first)


def test_line_has_code():
    (line,) = tokenize("G90 G1 X1 M8")

    assert line.has_code("G1")
    assert line.has_code("M8")
    assert not line.has_code("G0")
    assert not line.has_code("X1")

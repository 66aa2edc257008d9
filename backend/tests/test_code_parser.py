import pytest

from cleanflow.schemas.integration import TransformationOptions
from cleanflow.services.code_parser import BUILTIN_SHAPES, CodeParser, ParsedCode, fallback_parse


@pytest.mark.parametrize("code, expected", [
    ("QTO101", ("Quarto", "101")),
    ("APTO202", ("Apartamento", "202")),
    ("QTO-101A", ("Quarto", "101A")),
    ("UTI-07", ("UTI", "07")),
    ("lt12", ("Leito", "12")),
    ("12-SALA", ("Sala", "12")),
    ("ZZ9", ("ZZ", "9")),
])
def test_builtin_shapes(code, expected):
    assert CodeParser().parse(code) == ParsedCode(*expected)


def test_shape_order():
    labels = [shape.label for shape in BUILTIN_SHAPES]
    assert labels == ["LETTERS-ALPHANUMERIC", "LETTERSALPHANUMERIC", "LETTERS-DIGITS", "DIGITS-LETTERS"]


def test_override_wins_over_everything():
    parser = CodeParser(
        TransformationOptions(name_pattern=r'^(\w+?)\d', number_pattern=r'(\d+)$'),
        overrides={"QTO101": ParsedCode("Enfermaria", "1")}
    )
    assert parser.parse("QTO101") == ParsedCode("Enfermaria", "1")
    assert parser.resolve_override("QTO101") == ParsedCode("Enfermaria", "1")
    assert parser.resolve_override("QTO102") is None


def test_configured_patterns_use_group_one():
    parser = CodeParser(TransformationOptions(name_pattern=r'^B(\w{3})', number_pattern=r'-(\d+)$'))
    assert parser.parse("BALA-33") == ParsedCode("ALA", "33")


def test_configured_patterns_fall_through_when_not_matching():
    parser = CodeParser(TransformationOptions(name_pattern=r'^X(\w+)', number_pattern=r'(\d+)$'))
    assert parser.parse("QTO101") == ParsedCode("Quarto", "101")


def test_configured_patterns_disabled_by_custom_transform_false():
    options = TransformationOptions(name_pattern=r'^B(\w{3})', number_pattern=r'-(\d+)$', custom_transform=False)
    assert CodeParser(options).parse("BALA-33") == ParsedCode("BALA", "33")


def test_pattern_without_group_is_ignored():
    parser = CodeParser(TransformationOptions(name_pattern=r'^QTO', number_pattern=r'\d+'))
    assert parser.parse("QTO101") == ParsedCode("Quarto", "101")


def test_separator_runs_after_builtin_shapes():
    parser = CodeParser(TransformationOptions(name_separator="/"))
    assert parser.parse("UTI/ADULTO/3") == ParsedCode("UTI ADULTO", "3")
    # A built-in shape still takes precedence when it matches
    assert parser.parse("QTO101") == ParsedCode("Quarto", "101")


def test_separator_maps_abbreviations():
    parser = CodeParser(TransformationOptions(name_separator="_"))
    assert parser.parse("APTO_12B") == ParsedCode("Apartamento", "12B")


def test_blank_separator_is_ignored():
    parser = CodeParser(TransformationOptions(name_separator=" "))
    assert parser.parse("ALA 3 LESTE") == fallback_parse("ALA 3 LESTE")


@pytest.mark.parametrize("code, expected", [
    ("ABC", ("ABC", "ABC")),
    ("123", ("Leito", "123")),
    ("A1B2", ("AB", "12")),
])
def test_fallback(code, expected):
    assert fallback_parse(code) == ParsedCode(*expected)


@pytest.mark.parametrize("code", ["X", "9", "*-*", "QTO 10 1", "ÁREA-1", "--", "1-2-3"])
def test_parse_never_returns_empty_parts(code):
    parsed = CodeParser(TransformationOptions(name_separator="-")).parse(code)
    assert parsed.name
    assert parsed.number

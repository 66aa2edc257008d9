"""
Resolution of opaque external bed codes into a (name, number) pair.

Strategies are tried in order and the first one that recognises the code
wins; a final fallback always produces a pair for non-empty input.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, NamedTuple, Optional, Pattern

from cleanflow.constants.location_names import DEFAULT_NAME, map_common_name
from cleanflow.schemas.integration import TransformationOptions

log = logging.getLogger(__name__)


class ParsedCode(NamedTuple):
    name: str
    number: str


class CodeMatcher(ABC):
    """One parsing strategy."""

    @abstractmethod
    def try_parse(self, code: str) -> Optional[ParsedCode]:
        pass


class MappingOverrideMatcher(CodeMatcher):
    """Explicit location mappings keyed by external code."""

    def __init__(self, overrides: Dict[str, ParsedCode]):
        self.overrides = overrides

    def try_parse(self, code: str) -> Optional[ParsedCode]:
        return self.overrides.get(code)


class ConfiguredPatternMatcher(CodeMatcher):
    """Operator-supplied regexes; group 1 of each is used."""

    def __init__(self, name_pattern: Pattern, number_pattern: Pattern):
        self.name_pattern = name_pattern
        self.number_pattern = number_pattern

    def try_parse(self, code: str) -> Optional[ParsedCode]:
        name_match = self.name_pattern.search(code)
        number_match = self.number_pattern.search(code)
        if not name_match or not number_match:
            return None
        try:
            name = (name_match.group(1) or '').strip()
            number = (number_match.group(1) or '').strip()
        except IndexError:
            log.warning("Configured name/number pattern has no capture group; ignoring it")
            return None
        if not name or not number:
            return None
        return ParsedCode(name, number)


class ShapeMatcher(CodeMatcher):
    """Built-in code shape such as ``QTO-101A``; the abbreviation goes through the name dictionary."""

    def __init__(self, label: str, pattern: str, name_group: int = 1, number_group: int = 2):
        self.label = label
        self.pattern = re.compile(pattern)
        self.name_group = name_group
        self.number_group = number_group

    def try_parse(self, code: str) -> Optional[ParsedCode]:
        match = self.pattern.match(code)
        if not match:
            return None
        return ParsedCode(map_common_name(match.group(self.name_group)), match.group(self.number_group))

    def __repr__(self):
        return f"<ShapeMatcher({self.label})>"


class SeparatorMatcher(CodeMatcher):
    """Splits on the configured separator: the last part is the number."""

    def __init__(self, separator: str):
        self.separator = separator

    def try_parse(self, code: str) -> Optional[ParsedCode]:
        if self.separator not in code:
            return None
        parts = [part for part in code.split(self.separator) if part.strip()]
        if len(parts) < 2:
            return None
        number = parts[-1].strip()
        name = ' '.join(part.strip() for part in parts[:-1])
        return ParsedCode(map_common_name(name), number)


BUILTIN_SHAPES: List[ShapeMatcher] = [
    ShapeMatcher("LETTERS-ALPHANUMERIC", r'^([A-Za-z]+)-([0-9]+[A-Za-z]?)$'),
    ShapeMatcher("LETTERSALPHANUMERIC", r'^([A-Za-z]+)([0-9]+[A-Za-z]?)$'),
    ShapeMatcher("LETTERS-DIGITS", r'^([A-Za-z]+)-([0-9]+)$'),
    ShapeMatcher("DIGITS-LETTERS", r'^([0-9]+)-([A-Za-z]+)$', name_group=2, number_group=1),
]


def fallback_parse(code: str) -> ParsedCode:
    name = re.sub(r'[0-9]', '', code).strip() or DEFAULT_NAME
    number = re.sub(r'[^0-9]', '', code).strip() or code
    return ParsedCode(name, number)


def _compile(pattern: Optional[str]) -> Optional[Pattern]:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        log.warning(f"Ignoring invalid pattern '{pattern}': {e}")
        return None


class CodeParser:
    """
    Ordered chain of code matchers built from the transformation options.

    Order: location mapping override, configured name/number patterns,
    built-in shapes, configured separator, then ``fallback_parse``.
    """

    def __init__(
        self,
        transformation: Optional[TransformationOptions] = None,
        overrides: Optional[Dict[str, ParsedCode]] = None
    ):
        transformation = transformation or TransformationOptions()
        self.override_matcher = MappingOverrideMatcher(overrides or {})
        self.matchers: List[CodeMatcher] = [self.override_matcher]

        name_pattern = _compile(transformation.name_pattern)
        number_pattern = _compile(transformation.number_pattern)
        if name_pattern and number_pattern and transformation.custom_transform is not False:
            self.matchers.append(ConfiguredPatternMatcher(name_pattern, number_pattern))

        self.matchers.extend(BUILTIN_SHAPES)

        separator = transformation.name_separator
        if separator and separator.strip():
            self.matchers.append(SeparatorMatcher(separator))

    def resolve_override(self, code: str) -> Optional[ParsedCode]:
        return self.override_matcher.try_parse(code)

    def parse(self, code: str) -> ParsedCode:
        """Never raises; returns a non-empty pair for any non-empty code."""
        code = (code or '').strip()
        for matcher in self.matchers:
            parsed = matcher.try_parse(code)
            if parsed is not None:
                return parsed
        return fallback_parse(code)

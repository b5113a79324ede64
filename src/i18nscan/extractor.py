"""
Finds translation calls such as ``t('key', 'default', { count: 'n' })`` in raw
source text. This is a lexical scan, not a parser: only statically quoted keys
are recognized and the options object is read shallowly, one
``name: 'string'`` pair at a time. Nested objects, computed values and
non-string values are not resolved.
"""

import bisect
import logging
import re
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from i18nscan.classes import ExtractedCall, ParseOptions
from i18nscan.exceptions import ExtractionError, InvalidKeyError, OptionsParseError

logger = logging.getLogger(__name__)

DEFAULT_FUNC_LIST = ["t", "i18n.t", "i18next.t"]

# option name in source -> ParseOptions attribute
SUPPORTED_OPTIONS = {
    "defaultValue": "default_value",
    "defaultValue_plural": "default_value_plural",
    "count": "count",
    "context": "context",
    "ns": "ns",
    "keySeparator": "key_separator",
    "nsSeparator": "ns_separator",
}

_BRACKETS = "[]{}()"
_SPACE = r"[\r\n\s]*"
_QUOTED = (
    r"`(?:[^`\\]|\\[\s\S])*`"
    r"|\"(?:[^\"\\]|\\[\s\S])*\""
    r"|'(?:[^'\\]|\\[\s\S])*'"
)
_OPTION_PROPERTY = re.compile(
    r"""['"]?(\w+)['"]?\s*:\s*(['"`])((?:\\[\s\S]|(?!\2)[^\\])*)\2"""
)


class CallObserver(Protocol):
    def observe(self, call: ExtractedCall) -> None:
        ...


def build_call_pattern(func_list: Iterable[str]) -> re.Pattern[str]:
    funcs = "|".join(f"(?:{re.escape(func)})" for func in func_list)
    key = f"{_SPACE}(?P<key>{_QUOTED}){_SPACE}"
    default = f"{_SPACE}(?P<default>{_QUOTED}){_SPACE}"
    return re.compile(
        rf"(?:^\s*|[^a-zA-Z0-9_])(?P<func>{funcs})\({key}(?:,{default})?[,)]"
    )


def fix_string(value: str | None, is_key: bool) -> str | None:
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    quote = trimmed[0]
    if len(trimmed) >= 2 and quote in "'\"`" and trimmed[-1] == quote:
        trimmed = trimmed[1:-1].replace("\\" + quote, quote)

    if not trimmed and is_key:
        return None
    return trimmed


def match_balanced_parentheses(text: str) -> str:
    """Return the bracketed span starting at the first ``(``, ``{`` or ``[``.

    A closing bracket that does not match the innermost open one truncates the
    span right there instead of failing.
    """
    stack: list[int] = []
    start: int | None = None
    for index, char in enumerate(text):
        if start is not None and not stack:
            return text[start:index]

        position = _BRACKETS.find(char)
        if position == -1:
            continue
        if position % 2 == 0:
            if start is None:
                start = index
            stack.append(position + 1)
        elif not stack or stack.pop() != position:
            return text[start or 0 : index]

    return text[start or 0 :]


def is_balanced(code: str) -> bool:
    stack: list[int] = []
    for char in code:
        position = _BRACKETS.find(char)
        if position == -1:
            continue
        if position % 2 == 0:
            stack.append(position + 1)
        elif not stack or stack.pop() != position:
            return False
    return not stack


def parse_object_properties(code: str) -> dict[str, str]:
    properties = {}
    for match in _OPTION_PROPERTY.finditer(code):
        name, quote, value = match.groups()
        properties[name] = value.replace("\\" + quote, quote)
    return properties


def check_object_literal(code: str) -> None:
    stripped = code.strip()
    if stripped[:1] in ("(", "{", "[") and not is_balanced(stripped):
        raise OptionsParseError(f'Unable to parse code "{stripped}"', stripped)


class CallSiteExtractor:
    def __init__(
        self,
        func_list: Iterable[str] | None = None,
        props_filter: Callable[[str], str] | None = None,
    ) -> None:
        self.func_list = list(DEFAULT_FUNC_LIST if func_list is None else func_list)
        self.props_filter = props_filter
        self.translations: dict[str, ExtractedCall] = {}
        self._pattern = build_call_pattern(self.func_list) if self.func_list else None

    def set(self, key: str, call: ExtractedCall) -> None:
        self.translations[key] = call

    def observe(self, call: ExtractedCall) -> None:
        self.set(call.key, call)

    def clear(self) -> None:
        self.translations.clear()

    def extract(
        self,
        content: str,
        *,
        filepath: str = "",
        observer: CallObserver | None = None,
        on_error: Callable[[ExtractionError], None] | None = None,
    ) -> list[ExtractedCall]:
        if self._pattern is None:
            return []

        sink = observer if observer is not None else self
        line_starts = [0] + [match.end() for match in re.finditer("\n", content)]
        calls = []
        for match in self._pattern.finditer(content):
            location = _locate(line_starts, match.start("func"), filepath)
            key = fix_string(match.group("key"), True)
            if key is None:
                self._report(
                    on_error,
                    InvalidKeyError(
                        f"Empty translation key in {match.group(0).strip()}", **location
                    ),
                )
                continue

            options = ParseOptions()
            if match.group("default") is not None:
                default_value = fix_string(match.group("default"), False)
                if default_value is None:
                    continue
                options.default_value = default_value

            if match.group(0).endswith(","):
                self._read_options(content[match.end() :], options, location, on_error)

            call = ExtractedCall.build(key, options, **location)
            calls.append(call)
            sink.observe(call)

        logger.debug(f"Extracted {len(calls)} calls from {filepath or '<string>'}")
        return calls

    def _read_options(
        self,
        remaining: str,
        options: ParseOptions,
        location: dict[str, Any],
        on_error: Callable[[ExtractionError], None] | None,
    ) -> None:
        code = match_balanced_parentheses(remaining)
        if self.props_filter is not None:
            code = self.props_filter(code)
        if not code.strip():
            return

        try:
            check_object_literal(code)
        except OptionsParseError as ex:
            ex.filepath = location["filepath"]
            ex.line = location["line"]
            ex.column = location["column"]
            self._report(on_error, ex)

        for name, value in parse_object_properties(code).items():
            attribute = SUPPORTED_OPTIONS.get(name)
            if attribute is not None:
                setattr(options, attribute, value)

    @staticmethod
    def _report(
        on_error: Callable[[ExtractionError], None] | None, error: ExtractionError
    ) -> None:
        if on_error is None:
            logger.warning(f"{error.filepath or '<string>'}:{error.line}:{error.column}: {error}")
            return
        on_error(error)


def _locate(line_starts: list[int], offset: int, filepath: str) -> dict[str, Any]:
    index = bisect.bisect_right(line_starts, offset) - 1
    return {"filepath": filepath, "line": index + 1, "column": offset - line_starts[index] + 1}

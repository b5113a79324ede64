"""
Line-based detectors for source-language (Chinese) text that escaped the
translation functions, plus two advisory detectors for hard-coded domains and
naive string concatenation. Findings accumulate into a ``LintResults`` object
owned by the caller so a whole batch of files can be collected at once.
"""

import logging
import re
import threading
from collections.abc import Iterable

from i18nscan.classes import LintCategory, LintFinding, Location, Position
from i18nscan.extractor import (
    DEFAULT_FUNC_LIST,
    build_call_pattern,
    match_balanced_parentheses,
)

logger = logging.getLogger(__name__)

ZH_CHARS = "\u4e00-\u9fff"
ZH_PATTERN = re.compile(f"[{ZH_CHARS}]+")

_COMMENT_PREFIXES = ("//", "/*", "*")
_MARKUP_ELEMENT = re.compile(r"""^<("[^"]*"|'[^']*'|[^'">])*>(.+)(</[\w\-.]*>)$""")
_MARKUP_TEXT = re.compile(r"^>?\s*(.+?)\s*<?$")
_QUOTED_VALUE = re.compile(r"""^(['"`])(.+)\1$""")


def contains_zh(text: str) -> bool:
    return ZH_PATTERN.search(text) is not None


class LintResults:
    """The three finding buckets of one scan session."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.errors: list[LintFinding] = []
        self.suggestions: list[LintFinding] = []
        self.concatenations: list[LintFinding] = []

    def bucket_for(self, category: LintCategory) -> list[LintFinding]:
        if category is LintCategory.HARD_CODED_DOMAIN:
            return self.suggestions
        if category is LintCategory.NAIVE_STRING_CONCATENATION:
            return self.concatenations
        return self.errors

    def clear(self) -> None:
        with self.lock:
            self.errors.clear()
            self.suggestions.clear()
            self.concatenations.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self.errors) + len(self.suggestions) + len(self.concatenations)


class ZhLinter:
    def __init__(
        self,
        results: LintResults | None = None,
        func_list: Iterable[str] | None = None,
        skip_comments: bool = True,
    ) -> None:
        self.results = results if results is not None else LintResults()
        self.skip_comments = skip_comments
        # checked in this order, the order breaks ties between overlapping findings
        self.detectors: list[tuple[LintCategory, re.Pattern[str]]] = [
            (LintCategory.BARE_LITERAL_IN_CODE, ZH_PATTERN),
            (LintCategory.BARE_LITERAL_IN_MARKUP, re.compile(f"(?<=>)\\s*[{ZH_CHARS}]+\\s*(?=<)")),
            (LintCategory.BARE_LITERAL_IN_TEMPLATE, re.compile(f"`[^`]*[{ZH_CHARS}]+[^`]*`")),
            (LintCategory.HARD_CODED_DOMAIN, re.compile(r"https?://[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")),
            (
                LintCategory.NAIVE_STRING_CONCATENATION,
                re.compile(r"""['"`][^'"`]*['"`]\s*\+\s*['"`][^'"`]*['"`]"""),
            ),
        ]
        func_list = list(DEFAULT_FUNC_LIST if func_list is None else func_list)
        self._call_pattern = build_call_pattern(func_list) if func_list else None

    def detect(self, content: str) -> list[tuple[LintCategory, Location]]:
        messages = []
        call_spans = self.call_spans(content)
        line_start = 0
        for line_index, line in enumerate(content.split("\n")):
            offset = line_start
            line_start += len(line) + 1
            if self.skip_comments and line.strip().startswith(_COMMENT_PREFIXES):
                continue

            line_number = line_index + 1
            for category, pattern in self.detectors:
                match = self._first_match(category, pattern, line, offset, call_spans)
                if match is None:
                    continue
                messages.append(
                    (
                        category,
                        Location(
                            Position(line_number, match.start() + 1),
                            Position(line_number, match.end() + 1),
                        ),
                    )
                )
        return messages

    def verify(self, content: str, filepath: str) -> list[LintFinding]:
        lines = content.split("\n")
        added = []
        with self.results.lock:
            for index, (category, loc) in enumerate(self.detect(content)):
                bucket = self.results.bucket_for(category)
                if index > 0 and bucket:
                    last = bucket[-1]
                    if last.filepath == filepath and last.loc == loc:
                        continue

                finding = LintFinding(
                    filepath, loc, self.get_value(lines, loc, category), category
                )
                bucket.append(finding)
                added.append(finding)

        logger.debug(f"{filepath}: {len(added)} lint findings")
        return added

    @staticmethod
    def get_value(lines: list[str], loc: Location, category: LintCategory) -> str:
        start, end = loc.start, loc.end
        parts = []
        for line_number in range(start.line, end.line + 1):
            line = lines[line_number - 1]
            if start.line == end.line:
                part = line[start.column - 1 : end.column - 1]
            elif line_number == start.line:
                part = line[start.column - 1 :]
            elif line_number == end.line:
                part = line[: end.column - 1]
            else:
                part = line
            parts.append(part.strip())
        value = "".join(parts)

        if category is LintCategory.BARE_LITERAL_IN_MARKUP:
            match = _MARKUP_ELEMENT.match(value)
            if match:
                return match.group(2)
            match = _MARKUP_TEXT.match(value)
            return match.group(1) if match else value

        if not category.is_bare_literal:
            return value
        match = _QUOTED_VALUE.match(value)
        return match.group(2) if match else value

    def _first_match(
        self,
        category: LintCategory,
        pattern: re.Pattern[str],
        line: str,
        offset: int,
        call_spans: list[tuple[int, int]],
    ) -> re.Match[str] | None:
        for match in pattern.finditer(line):
            if not category.is_bare_literal:
                return match
            if any(start <= offset + match.start() < end for start, end in call_spans):
                continue
            if category is LintCategory.BARE_LITERAL_IN_CODE and not self.is_in_string_literal(
                line, match.start()
            ):
                continue
            return match
        return None

    def call_spans(self, content: str) -> list[tuple[int, int]]:
        """Character offsets covered by translation calls, options object included."""
        if self._call_pattern is None:
            return []

        spans = []
        for match in self._call_pattern.finditer(content):
            end = match.end()
            if match.group(0).endswith(","):
                remaining = content[end:]
                code = match_balanced_parentheses(remaining)
                if code.lstrip()[:1] in ("(", "{", "["):
                    end += remaining.index(code) + len(code)
            spans.append((match.start("func"), end))
        return spans

    @staticmethod
    def is_in_string_literal(line: str, position: int) -> bool:
        before = line[:position]
        for quote in ("'", '"', "`"):
            if len(re.findall(rf"(?<!\\){quote}", before)) % 2 == 1:
                return True
        return False

import glob
import logging
import pathlib
import re

logger = logging.getLogger(__name__)

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    match = _BRACES.search(pattern)
    if match is None:
        return [pattern]
    prefix, suffix = pattern[: match.start()], pattern[match.end() :]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{prefix}{option.strip()}{suffix}"))
    return expanded


def expand_patterns(patterns: list[str], cwd: str | None = None) -> list[str]:
    """Resolve file paths and glob patterns into a sorted, de-duplicated file list."""
    base = pathlib.Path(cwd) if cwd else pathlib.Path.cwd()
    files: set[str] = set()
    for pattern in patterns:
        logger.debug(f"Processing pattern {pattern!r}")
        direct = base / pattern
        if direct.is_file():
            files.add(str(direct) if cwd else pattern)
            continue

        matched = 0
        for expanded in expand_braces(pattern):
            for path in glob.glob(expanded, root_dir=cwd, recursive=True):
                if (base / path).is_file():
                    files.add(str(base / path) if cwd else path)
                    matched += 1
        logger.debug(f"Pattern {pattern!r} matched {matched} files")
    return sorted(files)


def read_file(filepath: str) -> str:
    return pathlib.Path(filepath).read_text("utf-8")

import json
import logging
import pathlib
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from i18nscan.classes import ProjectStats, SourceRow
from i18nscan.exceptions import ResourceLoadError, TranslationIntegrityError
from i18nscan.hash_key import KeyRegistry, strip_whitespace
from i18nscan.linter import contains_zh

logger = logging.getLogger(__name__)

_VARIANT_KEY = re.compile(r"^(k_.+)_(\d|plural)$")
_FULL_WIDTH = re.compile(
    "[\u4e00-\u9fa5\u3000-\u303f\ufe30-\ufe4f\uf900-\ufaff\uff10-\uff19\uff01-\uff5e\uff00-\uffef]"
)


def get_base_key(key: str) -> str:
    match = _VARIANT_KEY.match(key)
    return match.group(1) if match else key


def is_same_sentence(a: str, b: str) -> bool:
    return strip_whitespace(a) == strip_whitespace(b)


def count_words(text: str) -> int:
    # a full-width character is one word, so is every run of half-width characters
    full_width = len(_FULL_WIDTH.findall(text))
    rest = _FULL_WIDTH.sub(" ", text).split()
    return full_width + len(rest)


class TranslationProject:
    def __init__(
        self,
        native_lang: str = "zh",
        langs: Iterable[str] | None = None,
        registry: KeyRegistry | None = None,
        fallback_langs: dict[str, str] | None = None,
    ) -> None:
        self.native_lang = native_lang
        langs = ["en"] if langs is None else langs
        self.langs = [lang for lang in langs if lang != native_lang]
        self.registry = registry if registry is not None else KeyRegistry()
        self.fallback_langs = dict(fallback_langs or {})
        self.row_map: dict[str, SourceRow] = {}
        self.obsoleted_set: set[str] = set()

    def get_or_create_row(self, key: str) -> SourceRow:
        row = self.row_map.get(key)
        if row is None:
            row = self.row_map[key] = SourceRow(key)
        return row

    def add(self, key: str, lang: str, value: str) -> None:
        if lang == self.native_lang:
            self.get_or_create_row(key).native_string = value
            return

        native_string = self.get(key, self.native_lang)
        if value and native_string is not None and not is_same_sentence(value, native_string):
            self.get_or_create_row(key).translate_map[lang] = value

    def get(self, key: str, lang: str) -> str | None:
        row = self.row_map.get(key)
        if lang != self.native_lang:
            return row.translate_map.get(lang) if row is not None else None

        if row is not None and row.native_string is not None:
            return row.native_string
        return self._find_native_variant(key)

    def _find_native_variant(self, key: str) -> str | None:
        # a key may carry a context or plural suffix, the native text sits on the base form
        base_key = get_base_key(key)
        for candidate in (base_key, f"{base_key}_0"):
            row = self.row_map.get(candidate)
            if row is not None and row.native_string is not None:
                return row.native_string
        return None

    def load(self, source_path: str | pathlib.Path, lang: str) -> None:
        file = pathlib.Path(source_path) / f"{lang}.json"
        logger.debug(f"Loading {file}")
        try:
            data = json.loads(file.read_text("utf-8"))
        except OSError as ex:
            raise ResourceLoadError(f"Error loading file {file}: {ex}") from ex
        except json.JSONDecodeError as ex:
            raise ResourceLoadError(f"Error parsing file {file}: {ex}") from ex

        if not isinstance(data, dict):
            raise ResourceLoadError(f"{file} does not contain a JSON object")

        for key, value in data.items():
            if not isinstance(value, str):
                continue
            if lang == self.native_lang:
                self.get_or_create_row(key).native_string = value
                continue

            native_string = self.get(key, self.native_lang)
            if not value or native_string is None:
                continue
            if lang != "zh" and contains_zh(value):
                raise TranslationIntegrityError(lang, value)
            if not is_same_sentence(value, native_string):
                self.get_or_create_row(key).translate_map[lang] = value

    def keys(self) -> list[str]:
        return list(self.row_map)

    def has_key(self, key: str) -> bool:
        return key in self.row_map

    def obsolete(self, key: str) -> None:
        self.obsoleted_set.add(get_base_key(key))

    def is_obsoleted(self, key: str) -> bool:
        return get_base_key(key) in self.obsoleted_set

    def get_obsoleted_keys(self) -> set[str]:
        return set(self.obsoleted_set)

    def get_native_lang(self) -> str:
        return self.native_lang

    def get_langs(self) -> list[str]:
        return list(self.langs)

    def resolve(self, key: str, lang: str) -> str | None:
        value = self.get(key, lang)
        fallback = self.fallback_langs.get(lang)
        if value is None and fallback is not None:
            value = self.get(key, fallback)
        return value

    def output(self, lang: str | None = None) -> dict[str, str]:
        lang = lang or self.native_lang
        result = {}
        for key in sorted(self.row_map):
            if self.is_obsoleted(key):
                continue
            value = self.resolve(key, lang)
            if value is not None:
                result[key] = value
        return result

    def output_json(self, lang: str | None = None) -> str:
        return json.dumps(self.output(lang), ensure_ascii=False, indent=2)

    def output_to_directory(self, output_dir: str | pathlib.Path, lang: str | None = None) -> None:
        lang = lang or self.native_lang
        output_path = pathlib.Path(output_dir)
        context_dir = output_path / "context"
        source_dir = output_path / "source"
        context_dir.mkdir(parents=True, exist_ok=True)
        source_dir.mkdir(parents=True, exist_ok=True)

        stats = self.get_stats()
        context: dict[str, Any] = {
            "language": lang,
            "total_keys": stats.total_keys,
            "active_keys": stats.active_keys,
            "obsoleted_keys": stats.obsoleted_keys,
            "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
            "project_info": {
                "native_language": self.native_lang,
                "available_languages": self.get_langs(),
            },
        }
        (context_dir / "context.json").write_text(
            json.dumps(context, ensure_ascii=False, indent=2), "utf-8"
        )

        # resource keys are content hashes of the values, not the extraction keys
        source = {
            self.registry.hash_key(value, on_error=logger.warning): value
            for value in self.output(lang).values()
        }
        (source_dir / f"{lang}.json").write_text(
            json.dumps(source, ensure_ascii=False, indent=2), "utf-8"
        )
        logger.info(f"Wrote {len(source)} {lang} entries to {source_dir}")

    def untranslated(self, lang: str) -> list[str]:
        return [
            key
            for key in sorted(self.row_map)
            if not self.is_obsoleted(key)
            and self.get(key, self.native_lang) is not None
            and self.get(key, lang) is None
        ]

    def get_stats(self) -> ProjectStats:
        total_keys = len(self.row_map)
        active_keys = sum(1 for key in self.row_map if not self.is_obsoleted(key))
        lang_stats = {
            lang: sum(1 for row in self.row_map.values() if lang in row.translate_map)
            for lang in self.langs
        }
        return ProjectStats(total_keys, active_keys, total_keys - active_keys, lang_stats)

    def clear(self) -> None:
        self.row_map.clear()
        self.obsoleted_set.clear()

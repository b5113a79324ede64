"""
Drives the call-site extractor and the linter over a batch of files and folds
everything into one ``ScanResult``. A scanner instance is one scan session: it
owns the key registry and the lint buckets, and ``reset`` starts a fresh one.
"""

import dataclasses
import logging
import pathlib
import re
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from i18nscan.classes import (
    ErrorKind,
    ExtractedCall,
    LintFinding,
    ScanIssue,
    ScanResult,
    WarningKind,
)
from i18nscan.config import ScanConfig
from i18nscan.exceptions import ExtractionError, InvalidKeyError, ResourceLoadError
from i18nscan.extractor import CallObserver, CallSiteExtractor
from i18nscan.files import read_file
from i18nscan.hash_key import KeyRegistry
from i18nscan.linter import LintResults, ZhLinter
from i18nscan.project import TranslationProject, get_base_key, is_same_sentence

logger = logging.getLogger(__name__)

NOSCAN_DIRECTIVE = re.compile(r"//\s*@i18n-noscan\s")


class ScanCollector:
    """Folds every observed call into a scan result."""

    def __init__(self, result: ScanResult) -> None:
        self.result = result
        self._first_seen: dict[str, ExtractedCall] = {}

    def observe(self, call: ExtractedCall) -> None:
        self.result.keys.add(call.key)
        if call.default_value is None:
            return

        first = self._first_seen.setdefault(call.key, call)
        if not is_same_sentence(first.default_value or "", call.default_value):
            self.add_error(
                call,
                f'Key "{call.key}" has conflicting default values: '
                f'"{first.default_value}" ({first.filepath}:{first.line}) '
                f'and "{call.default_value}"',
                ErrorKind.DUPLICATE_KEY,
            )
            return
        self.result.translations[call.key] = call.default_value

    def add_error(self, call: ExtractedCall, message: str, kind: ErrorKind) -> None:
        self.result.errors.append(ScanIssue(call.filepath, call.line, call.column, message, kind))

    def add_extraction_error(self, error: ExtractionError) -> None:
        if isinstance(error, InvalidKeyError):
            kind = ErrorKind.INVALID_KEY
        else:
            kind = ErrorKind.PARSE_ERROR
        self.result.errors.append(
            ScanIssue(error.filepath, error.line, error.column, str(error), kind)
        )


class HashKeyObserver:
    """Treats the first call argument as the sentence and keys it by content hash."""

    def __init__(
        self,
        downstream: CallObserver,
        registry: KeyRegistry,
        on_collision: Callable[[ExtractedCall, str], None] | None = None,
    ) -> None:
        self.downstream = downstream
        self.registry = registry
        self.on_collision = on_collision

    def observe(self, call: ExtractedCall) -> None:
        messages: list[str] = []
        key = self.registry.hash_key(call.key, call.context, messages.append)
        if self.on_collision is not None:
            for message in messages:
                self.on_collision(call, message)
        self.downstream.observe(dataclasses.replace(call, key=key, default_value=call.key))


class Scanner:
    def __init__(
        self,
        config: ScanConfig | None = None,
        *,
        registry: KeyRegistry | None = None,
        lint_results: LintResults | None = None,
    ) -> None:
        self.config = config if config is not None else ScanConfig()
        self.registry = registry if registry is not None else KeyRegistry()
        self.linter = ZhLinter(lint_results, func_list=self.config.func_list)
        self.extractor = CallSiteExtractor(self.config.func_list)

    @property
    def lint_results(self) -> LintResults:
        return self.linter.results

    def reset(self) -> None:
        self.registry.clear()
        self.lint_results.clear()

    def scan_file(self, filepath: str) -> ScanResult:
        return self.scan_files([filepath])

    def scan_files(self, files: list[str]) -> ScanResult:
        start_time = time.perf_counter()
        result = ScanResult()
        collector = ScanCollector(result)
        marks = (
            len(self.lint_results.errors),
            len(self.lint_results.suggestions),
            len(self.lint_results.concatenations),
        )

        for filepath, content, error in self._read_all(files):
            if content is None:
                logger.error(f"Error reading {filepath}: {error}")
                message = f"Failed to read file {filepath}: {error}"
                result.errors.append(ScanIssue(filepath, 1, 1, message, ErrorKind.PARSE_ERROR))
                continue
            self._scan_content(filepath, content, collector)

        self._collect_lint_results(result, marks)
        if self.config.resources:
            self.sync_resources(result)

        result.stats.files_scanned = len(files)
        result.stats.keys_found = len(result.keys)
        result.stats.errors_count = len(result.errors)
        result.stats.warnings_count = len(result.warnings)
        result.stats.processing_time_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"Scanned {len(files)} files: {len(result.keys)} keys, "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def _read_all(self, files: list[str]) -> list[tuple[str, str | None, str | None]]:
        if self.config.read_workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.config.read_workers) as pool:
                return list(pool.map(self._read, files))
        return [self._read(filepath) for filepath in files]

    @staticmethod
    def _read(filepath: str) -> tuple[str, str | None, str | None]:
        try:
            return filepath, read_file(filepath), None
        except (OSError, UnicodeDecodeError) as ex:
            return filepath, None, str(ex)

    def _scan_content(self, filepath: str, content: str, collector: ScanCollector) -> None:
        if NOSCAN_DIRECTIVE.search(content):
            logger.info(f"Skipping {filepath} (@i18n-noscan)")
            return

        logger.debug(f"Scanning {filepath}")
        self.linter.verify(content, filepath)

        observer: CallObserver = collector
        if self.config.hash_keys:
            observer = HashKeyObserver(
                collector,
                self.registry,
                lambda call, message: collector.add_error(call, message, ErrorKind.DUPLICATE_KEY),
            )
        self.extractor.extract(
            content,
            filepath=filepath,
            observer=observer,
            on_error=collector.add_extraction_error,
        )

    def _collect_lint_results(self, result: ScanResult, marks: tuple[int, int, int]) -> None:
        errors_mark, suggestions_mark, concatenations_mark = marks
        with self.lint_results.lock:
            errors = self.lint_results.errors[errors_mark:]
            suggestions = self.lint_results.suggestions[suggestions_mark:]
            concatenations = self.lint_results.concatenations[concatenations_mark:]

        for finding in errors:
            message = f"Hard-coded Chinese text found: {finding.raw_value}"
            result.errors.append(_issue(finding, message, ErrorKind.HARD_CODED_TEXT))
        for finding in suggestions:
            message = f"Hard-coded domain found: {finding.raw_value}"
            result.warnings.append(_issue(finding, message, WarningKind.HARD_CODED_DOMAIN))
        for finding in concatenations:
            result.warnings.append(
                _issue(
                    finding,
                    f"String concatenation found: {finding.raw_value}",
                    WarningKind.STRING_CONCATENATION,
                )
            )

    def build_project(self, result: ScanResult) -> TranslationProject:
        """Merge scanned keys into a project, on top of the configured resources."""
        native_lang = self.config.default_lng
        project = TranslationProject(
            native_lang,
            self.config.lngs,
            registry=self.registry,
            fallback_langs=self.config.fallback_lngs,
        )

        if self.config.resources:
            resources = pathlib.Path(self.config.resources)
            if not resources.is_dir():
                raise ResourceLoadError(f"Resource directory {resources} does not exist")
            for lang in [native_lang, *project.get_langs()]:
                if (resources / f"{lang}.json").is_file():
                    project.load(resources, lang)

        for key in sorted(result.keys):
            value = result.translations.get(key) or project.get(key, native_lang) or key
            project.add(key, native_lang, value)

        if self.config.remove_unused_keys:
            # obsoleting works on base keys, a used variant keeps its whole family
            used_bases = {get_base_key(key) for key in result.keys}
            for key in project.keys():
                if key not in result.keys and get_base_key(key) not in used_bases:
                    project.obsolete(key)
        return project

    def sync_resources(self, result: ScanResult) -> TranslationProject:
        project = self.build_project(result)
        resources = pathlib.Path(self.config.resources or "")
        resource_file = str(resources / f"{project.native_lang}.json")

        for key in sorted(project.keys()):
            if key not in result.keys:
                message = f'Key "{key}" is not used in the source'
                result.warnings.append(
                    ScanIssue(resource_file, 1, 1, message, WarningKind.UNUSED_KEY)
                )

        if self.config.report_missing:
            for key in sorted(result.keys):
                for lang in project.get_langs():
                    if project.resolve(key, lang) is None:
                        result.errors.append(
                            ScanIssue(
                                resource_file,
                                1,
                                1,
                                f'Key "{key}" has no {lang} translation',
                                ErrorKind.MISSING_TRANSLATION,
                            )
                        )
        return project


def _issue(finding: LintFinding, message: str, kind: ErrorKind | WarningKind) -> ScanIssue:
    start = finding.loc.start
    return ScanIssue(finding.filepath, start.line, start.column, message, kind)

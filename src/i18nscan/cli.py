import json
import logging
import sys
from typing import Any

import click
import yaml

from i18nscan import files as file_patterns
from i18nscan.classes import ScanResult
from i18nscan.config import ScanConfig, load_config, logging_settings
from i18nscan.exceptions import I18nScanError
from i18nscan.project import TranslationProject, count_words
from i18nscan.scanner import Scanner

logger = logging.getLogger(__name__)


def setup(config_folder: str, verbose: bool = False) -> dict[str, Any]:
    try:
        config = load_config(config_folder)
    except (yaml.YAMLError, I18nScanError) as exc:
        logger.error(sys._getframe().f_code.co_name + " " + str(exc))
        sys.exit(1)

    settings = logging_settings(config)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.getLevelName(settings["level"]),
        format=settings["format"],
        datefmt=settings["datefmt"],
    )
    return config


@click.group()
@click.version_option(package_name="i18n-scan")
def cli() -> None:
    pass


@cli.command("scan")
@click.argument("patterns", nargs=-1)
@click.option("--config-folder", default="config", help="Configuration folder path.")
@click.option("-o", "--output", default=None, help="Output file (json) or directory (directory).")
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["json", "directory"]),
    default="json",
    help="Output format.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose output.")
def scan(
    patterns: tuple[str, ...],
    config_folder: str,
    output: str | None,
    output_format: str,
    verbose: bool,
) -> None:
    config = setup(config_folder, verbose)
    try:
        scan_config = ScanConfig.from_dict(config.get("scan"))
    except I18nScanError as exc:
        logger.error(str(exc))
        sys.exit(1)

    input_patterns = list(patterns) or scan_config.input
    files = [f for f in file_patterns.expand_patterns(input_patterns) if scan_config.accepts(f)]
    if not files:
        click.secho(
            f"No files found matching the given patterns: {input_patterns}",
            fg="red",
            err=True,
        )
        sys.exit(1)
    logger.info(f"Found {len(files)} files")

    scanner = Scanner(scan_config)
    try:
        result = scanner.scan_files(files)
        if output_format == "directory":
            project = scanner.build_project(result)
            project.output_to_directory(output or scan_config.output, scan_config.default_lng)
            for lang in project.get_langs():
                project.output_to_directory(output or scan_config.output, lang)
        else:
            write_json(result, output)
    except I18nScanError as exc:
        click.secho(str(exc), fg="red", err=True)
        sys.exit(1)

    report(result)
    if result.stats.errors_count > 0:
        sys.exit(1)


def write_json(result: ScanResult, output: str | None) -> None:
    text = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    if output is None:
        click.echo(text)
        return
    with open(output, "w", encoding="utf-8") as file:
        file.write(text)
    logger.info(f"Results written to {output}")


def report(result: ScanResult) -> None:
    for issue in result.errors:
        click.secho(f"{issue.filepath}:{issue.line}:{issue.column}", fg="yellow", err=True)
        click.secho(f"    [{issue.kind.value}] {issue.message}", fg="red", err=True)
    for issue in result.warnings:
        click.secho(f"{issue.filepath}:{issue.line}:{issue.column}", fg="yellow", err=True)
        click.echo(f"    [{issue.kind.value}] {issue.message}", err=True)

    stats = result.stats
    click.echo(
        f"Scanned {stats.files_scanned} files in {stats.processing_time_ms}ms. "
        f"Found {stats.keys_found} keys, {stats.errors_count} errors, "
        f"{stats.warnings_count} warnings.",
        err=True,
    )


@cli.command("stats")
@click.option("--resource-dir", required=True, help="Directory holding <lng>.json resource files.")
@click.option("--lng", "lngs", multiple=True, help="Target language, may be repeated.")
@click.option("--config-folder", default="config", help="Configuration folder path.")
def stats(resource_dir: str, lngs: tuple[str, ...], config_folder: str) -> None:
    config = setup(config_folder)
    try:
        scan_config = ScanConfig.from_dict(config.get("scan"))
        project = TranslationProject(
            scan_config.default_lng, list(lngs) or scan_config.target_lngs
        )
        project.load(resource_dir, project.get_native_lang())
        for lang in project.get_langs():
            project.load(resource_dir, lang)
    except I18nScanError as exc:
        click.secho(str(exc), fg="red", err=True)
        sys.exit(1)

    project_stats = project.get_stats()
    click.echo(f"Keys: {project_stats.total_keys} ({project_stats.active_keys} active)")
    for lang in project.get_langs():
        missing = project.untranslated(lang)
        native_lang = project.get_native_lang()
        words = sum(count_words(project.get(key, native_lang) or "") for key in missing)
        click.echo(
            f"  {lang}: {project_stats.lang_stats[lang]} translated, "
            f"{len(missing)} untranslated ({words} words)"
        )

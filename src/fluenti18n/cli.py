import logging
import os
import sys
from pathlib import Path

import yaml

import click
from fluenti18n import compiler
from fluenti18n.config import (
    FluentConfig,
    configure_logging,
    create_default_config,
    parse_config,
    read_config_file,
)
from fluenti18n.writers import OutputFormat

logger = logging.getLogger(__name__)


def load_cli_config(config_folder: str) -> FluentConfig:
    config_folder_path = os.path.abspath(config_folder)
    config_file_path = Path(config_folder_path) / "config.yml"

    config = FluentConfig()
    try:
        config = parse_config(read_config_file(config_file_path))
    except FileNotFoundError:
        logger.error(f"File not found: {config_file_path}")
    except (yaml.YAMLError, ValueError) as exc:
        logger.error(sys._getframe().f_code.co_name + " " + str(exc))
        sys.exit(1)

    configure_logging(config)
    return config


@click.group()
@click.version_option(package_name="fluenti18n")
@click.option("--config-folder", default="config", help="Configuration folder path.")
@click.pass_context
def cli(ctx: click.Context, config_folder: str) -> None:
    ctx.obj = {"config_folder": config_folder}


def _config(ctx: click.Context, locales: tuple[str, ...]) -> FluentConfig:
    config = load_cli_config(ctx.obj["config_folder"])
    if locales:
        config.supported_locales = list(locales)
    return config


@cli.command("compile")
@click.option("--locale", "locales", multiple=True, help="Locale to compile, repeatable.")
@click.option(
    "--format",
    "formats",
    multiple=True,
    type=click.Choice(["json", "properties", "binary"], case_sensitive=False),
    help="Output format, repeatable.",
)
@click.option("--po-directory", type=click.Path(file_okay=False), help="Directory holding messages_<locale>.po files.")
@click.option("--output-directory", type=click.Path(file_okay=False), help="Directory for compiled catalogs.")
@click.option("--compress/--no-compress", default=None, help="Gzip binary catalogs.")
@click.pass_context
def compile_command(
    ctx: click.Context,
    locales: tuple[str, ...],
    formats: tuple[str, ...],
    po_directory: str | None,
    output_directory: str | None,
    compress: bool | None,
) -> None:
    config = _config(ctx, locales)
    if formats:
        config.output_formats = [OutputFormat.parse(name) for name in formats]
    if po_directory:
        config.po_directory = Path(po_directory)
    if output_directory:
        config.output_directory = Path(output_directory)
    if compress is not None:
        config.compress = compress

    logger.info(f"Compiling translations for locales: {', '.join(config.supported_locales)}")
    try:
        result = compiler.TranslationCompiler(config).compile(strict=True)
    except compiler.CompilationFailed as ex:
        for error in ex.result.errors:
            click.echo(f"  {error}", err=True)
        raise click.ClickException("Translation compilation failed") from ex

    for locale in result.processed_locales:
        click.echo(result.summary(locale))
    for missing in result.missing_po_files:
        click.echo(f"Missing PO file: {missing}")
    click.echo(result.overall_summary())
    click.echo(f"Generated {result.total_generated_files} files")


@cli.command("validate")
@click.option("--locale", "locales", multiple=True, help="Locale to validate, repeatable.")
@click.option("--check-missing/--no-check-missing", default=True)
@click.option("--check-placeholders/--no-check-placeholders", default=True)
@click.option("--fail-on-errors", is_flag=True, help="Exit with an error status if issues are found.")
@click.pass_context
def validate_command(
    ctx: click.Context,
    locales: tuple[str, ...],
    check_missing: bool,
    check_placeholders: bool,
    fail_on_errors: bool,
) -> None:
    config = _config(ctx, locales)
    issues = compiler.validate_po_files(config, check_missing, check_placeholders)

    if not issues:
        click.echo("Validation completed successfully - no issues found")
        return

    click.echo(f"Validation completed with {len(issues)} issues:")
    for issue in issues:
        click.echo(f"  {issue}")
    if fail_on_errors:
        raise click.ClickException("Translation validation failed")


@cli.command("clean")
@click.option("--locale", "locales", multiple=True, help="Locale to clean, repeatable.")
@click.pass_context
def clean_command(ctx: click.Context, locales: tuple[str, ...]) -> None:
    config = _config(ctx, locales)
    deleted = compiler.clean_outputs(config)
    click.echo(f"Cleaned {len(deleted)} fluent i18n files")


@cli.command("init")
@click.pass_context
def init_command(ctx: click.Context) -> None:
    path = Path(ctx.obj["config_folder"]) / "config.yml"
    if create_default_config(path):
        click.echo(f"Created {path}")
    else:
        click.echo(f"{path} already exists")

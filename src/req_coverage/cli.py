"""Command line interface of the requirement coverage engine."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from src.shared.config import CoverageSettings
from src.shared.constants import EXIT_GENERATE_REPORT_FAILED, SERVICE_NAME, VERSION
from src.shared.errors import CoverageError
from src.shared.logging import setup_logging
from src.req_coverage.config import AnalysisConfig, ScopeConfig, load_analysis_config
from src.req_coverage.display import (
    print_error_panel,
    print_excluded,
    print_inconsistencies,
    print_statistics,
    print_validation_issues,
)
from src.req_coverage.engine import CoverageEngine
from src.req_coverage.services import load_requirement_tables, write_coverage_result

logger = logging.getLogger(__name__)

app = typer.Typer(name=SERVICE_NAME, help="Requirement coverage analysis for protocol test suites")

_DEFAULT_CONFIG_TEMPLATE = """\
# Requirement coverage configuration
scope:
  # '+'-separated scope values; give both or neither. 'None' means no value.
  in_scope: Server+Both
  out_of_scope: Client
  # '+'-separated subset of new, changed, unchanged. Empty means no filter.
  delta: ""
  # Requirement ID prefix used to expand abbreviated IDs, e.g. MS-XXXX_R
  prefix: ""

tables: []
logs: []
verbose: false
output: ""
replace: false
"""


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{SERVICE_NAME} {VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Requirement coverage analysis for protocol test suites."""
    settings = CoverageSettings()
    setup_logging(SERVICE_NAME, settings.log_level, settings.log_file or None, logger_name="src")


def _merge_config(
    config_path: Optional[Path],
    tables: Optional[List[Path]],
    logs: Optional[List[Path]],
    in_scope: Optional[str],
    out_scope: Optional[str],
    delta: Optional[str],
    prefix: Optional[str],
    verbose: bool,
) -> AnalysisConfig:
    """Overlay command line options on the YAML configuration."""
    if config_path is None:
        env_path = CoverageSettings().config_path
        config_path = Path(env_path) if env_path else None
    config = load_analysis_config(config_path)

    scope = config.scope
    if in_scope is not None or out_scope is not None:
        scope = ScopeConfig(
            in_scope=in_scope, out_of_scope=out_scope, delta=scope.delta, prefix=scope.prefix
        )
    if delta is not None:
        scope.delta = delta
    if prefix is not None:
        scope.prefix = prefix
    config.scope = scope

    if tables:
        config.tables = [str(p) for p in tables]
    if logs:
        config.logs = [str(p) for p in logs]
    config.verbose = config.verbose or verbose
    return config


@app.command()
def analyze(
    table: Optional[List[Path]] = typer.Option(None, "--table", "-t", help="Requirement table XML file"),
    log: Optional[List[Path]] = typer.Option(None, "--log", "-l", help="Test log XML file"),
    in_scope: Optional[str] = typer.Option(None, "--in-scope", help="In-scope values, e.g. Server+Both"),
    out_scope: Optional[str] = typer.Option(None, "--out-scope", help="Out-of-scope values, e.g. Client"),
    delta: Optional[str] = typer.Option(None, "--delta", help="Delta values, e.g. Changed+New"),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Requirement ID prefix"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML configuration file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result as JSON"),
    replace: bool = typer.Option(False, "--replace", help="Overwrite an existing output file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show warnings and excluded requirements"),
) -> None:
    """Compute requirement coverage from tables and test logs."""
    try:
        settings = _merge_config(config, table, log, in_scope, out_scope, delta, prefix, verbose)
        if not settings.tables:
            raise CoverageError("At least one requirement table is required.")
        if not settings.logs:
            raise CoverageError("At least one test log is required.")

        result = CoverageEngine(settings).analyze_files()

        print_statistics(result.statistics)
        print_validation_issues(
            result.validation_errors, result.validation_warnings, settings.verbose
        )
        print_inconsistencies(
            result.inconsistency_errors, result.inconsistency_warnings, settings.verbose
        )
        if settings.verbose:
            print_excluded(result.excluded)

        target = output or (Path(settings.output) if settings.output else None)
        if target is not None:
            write_coverage_result(result, target, replace=replace or settings.replace)
            typer.echo(f"Coverage result written to {target}")
    except (CoverageError, FileExistsError) as exc:
        logger.error("Coverage analysis failed: %s", exc)
        print_error_panel(exc)
        raise typer.Exit(code=EXIT_GENERATE_REPORT_FAILED)


@app.command()
def validate(
    table: List[Path] = typer.Option(..., "--table", "-t", help="Requirement table XML file"),
    in_scope: Optional[str] = typer.Option(None, "--in-scope"),
    out_scope: Optional[str] = typer.Option(None, "--out-scope"),
    delta: Optional[str] = typer.Option(None, "--delta"),
    prefix: Optional[str] = typer.Option(None, "--prefix"),
    config: Optional[Path] = typer.Option(None, "--config"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Check requirement tables without any test log."""
    try:
        settings = _merge_config(config, table, None, in_scope, out_scope, delta, prefix, verbose)
        engine = CoverageEngine(settings)
        analysis = engine.analyze_table(load_requirement_tables(settings.tables))
    except CoverageError as exc:
        logger.error("Requirement table validation failed: %s", exc)
        print_error_panel(exc)
        raise typer.Exit(code=EXIT_GENERATE_REPORT_FAILED)

    print_validation_issues(analysis.report.errors, analysis.report.warnings, settings.verbose)
    typer.echo(
        f"{len(analysis.records)} requirements, "
        f"{len(analysis.classification.to_verify)} to verify, "
        f"{len(analysis.graph)} in the derivation graph, "
        f"{len(analysis.report.errors)} validation errors"
    )


@app.command()
def init(
    path: Path = typer.Argument(Path("coverage.yaml"), help="Where to write the template"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a default YAML configuration file."""
    if path.exists() and not force:
        print_error_panel(f"{path} already exists, use --force to overwrite it.")
        raise typer.Exit(code=EXIT_GENERATE_REPORT_FAILED)
    path.write_text(_DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    typer.echo(f"Configuration template written to {path}")

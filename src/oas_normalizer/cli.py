"""CLI entry point for oas-normalizer."""

from pathlib import Path

import click
from pydantic import ValidationError

from oas_normalizer.config import NormalizerConfig
from oas_normalizer.errors import NormalizerError
from oas_normalizer.loader.source import load_document, write_document
from oas_normalizer.pipeline import find_violations, normalize_document

PATCHED_ARTIFACT = "openapi_patched.json"
SOURCE_ARTIFACT = "openapi_source.json"


def _config() -> NormalizerConfig:
    try:
        return NormalizerConfig.from_env()
    except ValidationError as e:
        raise click.ClickException(f"invalid configuration: {e}") from e


def _load(source: str, config: NormalizerConfig) -> dict:
    click.echo(f"Loading {source}...")
    try:
        return load_document(source, timeout=config.fetch_timeout)
    except NormalizerError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def main():
    """oas-normalizer: rewrite OpenAPI documents for strict client generators."""
    pass


@main.command("normalize")
@click.argument("source")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Where to write the normalized document.")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "yaml"]), help="Output format.")
@click.option("--debug-dir", default=None, type=click.Path(path_type=Path), help="Directory for debug artifacts.")
@click.option("--max-depth", default=None, type=click.IntRange(min=1), help="Maximum schema nesting depth.")
def normalize_cmd(source: str, output: Path, fmt: str, debug_dir: Path | None, max_depth: int | None):
    """Normalize SOURCE (a file path or http(s) URL)."""
    config = _config()
    overrides = {}
    if debug_dir is not None:
        overrides["debug_dir"] = debug_dir
    if max_depth is not None:
        overrides["max_depth"] = max_depth
    config = config.model_copy(update=overrides)

    raw = _load(source, config)

    try:
        result = normalize_document(raw, config)
    except NormalizerError as e:
        if config.debug_dir is not None:
            saved = write_document(raw, config.debug_dir / SOURCE_ARTIFACT)
            click.echo(f"Source document saved to {saved}", err=True)
        raise click.ClickException(str(e)) from e

    report = result.report
    click.echo(
        f"Normalized {report.operations} operations "
        f"({report.synthesized_ids} ids synthesized, {report.renamed_ids} renamed), "
        f"{report.merged_composites} allOf merged, {report.reduced_unions} unions reduced, "
        f"{report.sanitized_enums} enums sanitized."
    )
    for entry in report.unresolved_refs:
        click.echo(f"  unresolved reference: {entry}", err=True)

    if config.debug_dir is not None:
        saved = write_document(result.document, config.debug_dir / PATCHED_ARTIFACT)
        click.echo(f"  Debug copy saved to {saved}")

    write_document(result.document, output, fmt)
    click.echo(f"Normalized document saved to {output}")


@main.command()
@click.argument("source")
@click.pass_context
def check(ctx: click.Context, source: str):
    """Report everything in SOURCE that still needs normalizing."""
    config = _config()
    raw = _load(source, config)
    try:
        violations = find_violations(raw, config)
    except NormalizerError as e:
        raise click.ClickException(str(e)) from e

    for violation in violations:
        click.echo(violation)
    if violations:
        click.echo(f"{len(violations)} violations found.", err=True)
        ctx.exit(1)
    click.echo("Document is normalized.")

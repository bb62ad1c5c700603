"""Entry point: python -m sdkgen SPEC -o OUTPUT

Reads an OpenAPI document (JSON or YAML, picked by extension), generates
the SDK units and writes them below OUTPUT.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import click
import yaml

from .codegen import write_units
from .config import GeneratorConfig
from .errors import ParseError, SdkGenError
from .pipeline import generate_from_file
from .tables import load_tables


def _load_config(config_path: Path | None) -> GeneratorConfig:
    if config_path is None:
        return GeneratorConfig()
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ParseError(f"Cannot read config {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError(f"Config {config_path} must be a mapping")
    return GeneratorConfig.from_mapping(data, base_dir=config_path.parent)


@click.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(file_okay=False, path_type=Path), help="Directory to write generated units into.")
@click.option("--namespace", default=None, help="Root package of the generated SDK.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML generator config file.")
@click.option("--tables", "tables_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML/JSON lookup table overrides.")
@click.option("--fallback-resource", default=None, help="Resource name for endpoints without a collection.")
@click.option("--dry-run", is_flag=True, help="List the units without writing them.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(
    spec_path: Path,
    output: Path,
    namespace: str | None,
    config_path: Path | None,
    tables_path: Path | None,
    fallback_resource: str | None,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Generate SDK source units from an OpenAPI document."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _load_config(config_path)
        overrides = {}
        if namespace:
            overrides["namespace"] = namespace
        if fallback_resource:
            overrides["fallback_resource_name"] = fallback_resource
        if tables_path:
            overrides["tables"] = load_tables(tables_path)
        config = dataclasses.replace(config, **overrides)

        click.echo(f"Parsing {spec_path}...")
        result = generate_from_file(spec_path, config)
    except SdkGenError as exc:
        raise click.ClickException(str(exc)) from exc

    for warning in result.collisions:
        click.echo(f"Warning: {warning}", err=True)

    if dry_run:
        for unit in result.units:
            click.echo(unit)
        return

    written = write_units(result.units, output)
    click.echo(
        f"Generated {len(written)} units for {len(result.specification.endpoints)} endpoints in {output}"
    )


if __name__ == "__main__":
    main()

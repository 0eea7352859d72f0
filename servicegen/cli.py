"""Command-line entry point: python -m servicegen SCHEMA -o OUTPUT"""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path

import click
import httpx

from .codegen import generate
from .config import ENUM_STYLES, GeneratorConfig, load_config
from .context_builder import build_context
from .errors import RenderError, ServiceGenError
from .loader import load_document

logger = logging.getLogger(__name__)


@click.command()
@click.argument("schema")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Directory to write the generated project into.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML or JSON options file.")
@click.option("--namespace", default=None, help="Namespace wrapping the generated types.")
@click.option("--project-name", default=None, help="Subdirectory name under the output directory.")
@click.option("--enum-style", default=None, type=click.Choice(ENUM_STYLES), help="Render enums as unions or as enum declarations.")
@click.option("--nullable/--no-nullable", default=None, help="Render optional properties as `T | null`.")
@click.option("--camel-case/--no-camel-case", "is_camel_case", default=True, help="Camel-case tags and function names. Repeat suffixes fold in too: listUsers_2 becomes listUsers2.")
@click.option("--data-field", "data_fields", multiple=True, help="Envelope field to unwrap from responses (repeatable).")
@click.option("--api-prefix", default=None, help="Literal prefix prepended to every path.")
@click.option("--request-lib-path", default=None, help="Module or import statement providing `request`.")
@click.option("--authorization", default=None, envvar="SERVICEGEN_AUTHORIZATION", help="Authorization header for URL schemas.")
@click.option("--mapping-file", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Write vendor path mappings as JSON.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity.")
def main(
    schema: str,
    output: Path,
    config_path: Path | None,
    namespace: str | None,
    project_name: str | None,
    enum_style: str | None,
    nullable: bool | None,
    is_camel_case: bool,
    data_fields: tuple[str, ...],
    api_prefix: str | None,
    request_lib_path: str | None,
    authorization: str | None,
    mapping_file: Path | None,
    verbose: int,
) -> None:
    """Generate TypeScript request services from an OpenAPI 3 document."""
    logging.basicConfig(
        level=logging.DEBUG if verbose > 1 else logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.captureWarnings(True)

    overrides = {
        "namespace": namespace,
        "project_name": project_name,
        "enum_style": enum_style,
        "nullable": nullable,
        "is_camel_case": is_camel_case,
        "data_fields": list(data_fields) or None,
        "api_prefix": api_prefix,
        "request_lib_path": request_lib_path,
    }
    try:
        if config_path:
            config = load_config(config_path, **overrides)
        else:
            config = GeneratorConfig(**{k: v for k, v in overrides.items() if v is not None})
    except (ValueError, TypeError) as exc:
        raise click.BadParameter(str(exc), param_hint="--config") from exc

    try:
        document = load_document(schema, authorization)
        result = build_context(document, config)
        outcome = generate(result, config, output)
        failed = [name for name, ok in outcome.items() if not ok]
        if failed:
            raise RenderError(failed)
    except ServiceGenError as exc:
        raise click.ClickException(str(exc)) from exc
    except (OSError, httpx.HTTPError) as exc:
        raise click.ClickException(f"Cannot read {schema}: {exc}") from exc

    if mapping_file:
        mapping_file.parent.mkdir(parents=True, exist_ok=True)
        mapping_file.write_text(
            json.dumps([dataclasses.asdict(m) for m in result.mappings], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info("Wrote %d vendor mappings to %s", len(result.mappings), mapping_file)

    click.echo(f"Generated {len(outcome)} files in {output / config.project_name}")

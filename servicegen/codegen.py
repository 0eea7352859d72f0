"""Render templates and write generated output.

Takes the IR from context_builder and produces, under
<output>/<project_name>/:
  typings.d.ts      every named type in one namespace declaration
  <Controller>.ts   one per tag
  index.ts          re-exports all controllers
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

import jinja2

from .config import GeneratorConfig
from .ir import GenerationResult

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

# Hand-kept files the cleanup step must not delete
KEEP_MARKER = "_deperated"


def import_statement(request_lib_path: str | None) -> str:
    if request_lib_path and request_lib_path.startswith("import"):
        return request_lib_path
    if request_lib_path:
        return f"import request from '{request_lib_path}'"
    return 'import { request } from "umi"'


def make_environment(config: GeneratorConfig) -> jinja2.Environment:
    folder = config.templates_folder or TEMPLATE_DIR
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(folder)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        autoescape=False,
    )


def clean_output(folder: Path) -> None:
    """Remove previously generated files, keeping anything marked as kept."""
    if not folder.exists():
        return
    for entry in sorted(folder.iterdir()):
        if KEEP_MARKER in entry.name:
            continue
        if entry.is_dir():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def render_unit(
    env: jinja2.Environment,
    template_name: str,
    context: dict[str, Any],
    target: Path,
) -> bool:
    """Render one template to ``target``; False if rendering or writing failed."""
    try:
        content = env.get_template(template_name).render(**context)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except (jinja2.TemplateError, OSError):
        logger.exception("Failed to generate %s from %s", target, template_name)
        return False
    return True


def generate(result: GenerationResult, config: GeneratorConfig, output_dir: Path) -> dict[str, bool]:
    """Write every output unit; returns {file name: succeeded}."""
    env = make_environment(config)
    final_path = Path(output_dir) / config.project_name
    clean_output(final_path)

    shared = {
        "namespace": config.namespace,
        "nullable": config.nullable,
        "version": result.version,
    }
    outcome: dict[str, bool] = {}

    outcome["typings.d.ts"] = render_unit(
        env, "typings.d.ts.j2", {**shared, "types": result.types}, final_path / "typings.d.ts",
    )
    for service in result.services:
        outcome[service.file_name] = render_unit(
            env,
            "service_controller.ts.j2",
            {
                **shared,
                "service": service,
                "request_import_statement": import_statement(config.request_lib_path),
                "request_options_type": config.request_options_type,
            },
            final_path / service.file_name,
        )
    outcome["index.ts"] = render_unit(
        env, "service_index.ts.j2", {**shared, "list": result.class_names}, final_path / "index.ts",
    )

    failed = [name for name, ok in outcome.items() if not ok]
    if failed:
        logger.warning("%d of %d files failed to generate", len(failed), len(outcome))
    else:
        logger.info("Generated %d files in %s", len(outcome), final_path)
    return outcome

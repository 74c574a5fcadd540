from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TextIO, Tuple

from rich.console import Console

from opencomposition.core.exceptions import ComposerError, QuantityFormatError, SinkWriteError
from opencomposition.core.registry import KindRegistry, default_registry
from opencomposition.core.synthesizer import DEFAULT_VOLUME_SIZE, synthesize
from opencomposition.logging import bind_context
from opencomposition.models.resources import Resource
from opencomposition.output.render import emit, render_json, render_table, render_yaml, to_manifest
from opencomposition.parsers.descriptor_parser import expand_paths, load_documents, parse_descriptor
from opencomposition.utils.units import parse_quantity


OUTPUT_FORMATS = ("yaml", "json", "table")


@dataclass(slots=True)
class ConvertConfig:
    output: str = "yaml"
    default_volume_size: str = DEFAULT_VOLUME_SIZE
    fail_fast: bool = False
    debug: bool = False

    @property
    def log_level(self) -> int:
        return logging.DEBUG if self.debug else logging.WARNING


@dataclass(slots=True)
class ConversionReport:
    converted: List[str] = field(default_factory=list)
    failures: List[ComposerError] = field(default_factory=list)
    resource_count: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


def validate_config(cfg: ConvertConfig) -> None:
    if cfg.output not in OUTPUT_FORMATS:
        raise ComposerError(
            f"unknown output format {cfg.output!r}; use {'|'.join(OUTPUT_FORMATS)}", stage="config"
        )
    try:
        parse_quantity(cfg.default_volume_size)
    except ValueError as e:
        raise QuantityFormatError(
            f"invalid default volume size {cfg.default_volume_size!r}", stage="config"
        ) from e


def _convert_one(
    doc: object, source: str, cfg: ConvertConfig, registry: KindRegistry
) -> Tuple[List[Resource], List[Any]]:
    """Parse, synthesize and serialize one descriptor; nothing is written here.

    The payload is YAML documents for ``yaml``, manifest mappings for ``json``
    and empty for ``table``.
    """
    descriptor = parse_descriptor(doc, source=source)  # type: ignore[arg-type]
    try:
        resources = synthesize(descriptor, default_volume_size=cfg.default_volume_size)
    except ComposerError as e:
        raise e.with_context(source=source, stage="synthesize")
    try:
        if cfg.output == "yaml":
            payload: List[Any] = render_yaml(resources, registry)
        elif cfg.output == "json":
            payload = [to_manifest(r, registry) for r in resources]
        else:
            # table rows are resolved at render time; check kinds up front
            for r in resources:
                registry.resolve(r)
            payload = []
    except ComposerError as e:
        raise e.with_context(source=source, stage="serialize")
    return resources, payload


def convert(
    paths: List[str],
    cfg: ConvertConfig,
    sink: TextIO,
    *,
    registry: Optional[KindRegistry] = None,
    console: Optional[Console] = None,
) -> ConversionReport:
    """Convert every descriptor found in ``paths`` and write the manifests to ``sink``.

    A failing descriptor is recorded and skipped unless ``fail_fast`` is set;
    a failing sink always stops the run. YAML is streamed per descriptor,
    while ``json`` and ``table`` output is written once after the last one.
    """
    validate_config(cfg)
    registry = registry or default_registry()
    report = ConversionReport()
    table_rows: List[Tuple[str, Resource]] = []
    json_items: List[Dict[str, Any]] = []
    stopped = False

    for path in expand_paths(paths):
        log = bind_context(source=path)
        try:
            docs = load_documents(path)
        except ComposerError as e:
            log.error("conversion_failed", stage=e.stage, error=e.message)
            report.failures.append(e)
            if cfg.fail_fast:
                break
            continue

        for index, doc in enumerate(docs):
            source = path if len(docs) == 1 else f"{path}[{index}]"
            try:
                resources, payload = _convert_one(doc, source, cfg, registry)
            except ComposerError as e:
                log.error("conversion_failed", stage=e.stage, document=index, error=e.message)
                report.failures.append(e)
                if cfg.fail_fast:
                    stopped = True
                    break
                continue

            if cfg.output == "yaml":
                try:
                    emit(payload, sink)
                except SinkWriteError as e:
                    e.with_context(source=source)
                    log.error("conversion_failed", stage=e.stage, error=e.message)
                    report.failures.append(e)
                    return report
            elif cfg.output == "json":
                json_items.extend(payload)
            else:
                table_rows.extend((source, r) for r in resources)

            report.converted.append(source)
            report.resource_count += len(resources)
            log.debug("converted", document=index, resources=len(resources))

        if stopped:
            break

    if cfg.output == "json":
        try:
            emit([render_json(json_items)], sink, separator="")
        except SinkWriteError as e:
            bind_context().error("conversion_failed", stage=e.stage, error=e.message)
            report.failures.append(e)
    elif cfg.output == "table":
        render_table(table_rows, registry, console=console or Console(file=sink))

    return report

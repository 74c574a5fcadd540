from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, TextIO, Tuple

import yaml
from rich.console import Console
from rich.table import Table

from opencomposition.core.exceptions import SinkWriteError
from opencomposition.core.registry import KindRegistry
from opencomposition.models.resources import (
    Deployment,
    PersistentVolumeClaim,
    Resource,
    Service,
    TypedResource,
)


DOCUMENT_SEPARATOR = "---\n"


def to_manifest(resource: TypedResource, registry: KindRegistry) -> Dict[str, Any]:
    """Resolve apiVersion/kind and dump the resource as a plain mapping."""
    typed = registry.apply(resource)
    return typed.model_dump(by_alias=True, exclude_none=True, mode="json")


def render_yaml(resources: Iterable[Resource], registry: KindRegistry) -> List[str]:
    return [
        yaml.safe_dump(to_manifest(r, registry), sort_keys=True, default_flow_style=False)
        for r in resources
    ]


def render_json(manifests: Iterable[Dict[str, Any]]) -> str:
    """Wrap manifests in a single v1 List document."""
    data = {"apiVersion": "v1", "kind": "List", "items": list(manifests)}
    return json.dumps(data, indent=2, sort_keys=True) + "\n"


def emit(documents: Iterable[str], sink: TextIO, *, separator: str = DOCUMENT_SEPARATOR) -> None:
    for doc in documents:
        try:
            if separator:
                sink.write(separator)
            sink.write(doc)
        except OSError as e:
            raise SinkWriteError(f"could not write to output: {e}", stage="emit") from e


def _details(resource: Resource) -> str:
    if isinstance(resource, Deployment):
        replicas = resource.spec.replicas if resource.spec.replicas is not None else "default"
        containers = ", ".join(c.name for c in resource.spec.template.spec.containers)
        return f"replicas={replicas} containers={containers}"
    if isinstance(resource, Service):
        ports = ", ".join(str(p.port) for p in resource.spec.ports)
        return f"type={resource.spec.type or 'ClusterIP'} ports={ports}"
    if isinstance(resource, PersistentVolumeClaim):
        storage = resource.spec.resources.requests.get("storage", "")
        return f"storage={storage} access={','.join(resource.spec.access_modes)}"
    return ""  # pragma: no cover


def render_table(
    rows: Iterable[Tuple[str, Resource]], registry: KindRegistry, console: Console | None = None
) -> None:
    console = console or Console()

    table = Table(title="Generated Resources")
    table.add_column("Source")
    table.add_column("Kind")
    table.add_column("API Version")
    table.add_column("Name")
    table.add_column("Details")

    for source, resource in rows:
        gvk = registry.resolve(resource)
        table.add_row(source, gvk.kind, gvk.api_version, resource.metadata.name, _details(resource))

    console.print(table)

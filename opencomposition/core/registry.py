from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Type

from opencomposition.core.exceptions import UnresolvableResourceKind
from opencomposition.models.resources import (
    Deployment,
    PersistentVolumeClaim,
    Service,
    TypedResource,
)


@dataclass(frozen=True, slots=True)
class GroupVersionKind:
    api_version: str
    kind: str


class KindRegistry:
    """Maps resource models to the apiVersion/kind they are emitted as."""

    def __init__(self, kinds: Optional[Dict[Type[TypedResource], GroupVersionKind]] = None) -> None:
        self._kinds: Dict[Type[TypedResource], GroupVersionKind] = dict(kinds or {})

    def register(self, resource_type: Type[TypedResource], api_version: str, kind: str) -> None:
        self._kinds[resource_type] = GroupVersionKind(api_version=api_version, kind=kind)

    def resolve(self, resource: TypedResource) -> GroupVersionKind:
        gvk = self._kinds.get(type(resource))
        if gvk is None:
            raise UnresolvableResourceKind(
                f"can't output unversioned type: {type(resource).__name__}"
            )
        return gvk

    def apply(self, resource: TypedResource) -> TypedResource:
        """Return a copy of ``resource`` carrying its resolved apiVersion/kind."""
        gvk = self.resolve(resource)
        return resource.model_copy(update={"api_version": gvk.api_version, "kind": gvk.kind})


def default_registry() -> KindRegistry:
    registry = KindRegistry()
    registry.register(Deployment, "apps/v1", "Deployment")
    registry.register(Service, "v1", "Service")
    registry.register(PersistentVolumeClaim, "v1", "PersistentVolumeClaim")
    return registry

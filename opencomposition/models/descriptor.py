from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from opencomposition.models.pod import PodSpec


DESCRIPTOR_KEYS = {
    "name",
    "replicas",
    "replicaCount",
    "expose",
    "labels",
    "persistentVolumes",
    "persistent_volumes",
}

_EMPTY_VALUES = {
    "labels": dict,
    "persistent_volumes": list,
    "pod_spec": dict,
    "expose": bool,
}


class VolumeSpec(BaseModel):
    """A user-declared persistent volume; extra keys hold the volume source."""

    model_config = ConfigDict(extra="allow")

    name: str
    size: Optional[str] = None

    @field_validator("size", mode="before")
    @classmethod
    def _size_as_text(cls, v: Any) -> Any:
        # YAML reads `size: 1000` as an int
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class Descriptor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    replicas: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("replicas", "replicaCount")
    )
    expose: bool = False
    labels: Dict[str, str] = Field(default_factory=dict)
    persistent_volumes: List[VolumeSpec] = Field(
        default_factory=list,
        validation_alias=AliasChoices("persistentVolumes", "persistent_volumes"),
    )
    pod_spec: PodSpec = Field(
        default_factory=PodSpec, validation_alias=AliasChoices("podSpec", "pod_spec")
    )

    @field_validator("labels", "persistent_volumes", "pod_spec", "expose", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any, info: ValidationInfo) -> Any:
        # a key written with no value (`labels:`) reads as null
        if v is not None:
            return v
        return _EMPTY_VALUES[info.field_name]()

    @model_validator(mode="before")
    @classmethod
    def _collect_inline_pod_spec(cls, data: Any) -> Any:
        """Accept the pod spec inline next to the descriptor keys.

        ``containers:``, ``volumes:`` and any other pod-level key may sit at
        the top level of the document; they are gathered into ``podSpec``.
        """
        if not isinstance(data, dict) or "podSpec" in data or "pod_spec" in data:
            return data
        inline = {k: v for k, v in data.items() if k not in DESCRIPTOR_KEYS}
        out = {k: v for k, v in data.items() if k in DESCRIPTOR_KEYS}
        out["podSpec"] = inline
        return out

    def find_persistent_volume(self, name: str) -> Optional[VolumeSpec]:
        for v in self.persistent_volumes:
            if v.name == name:
                return v
        return None

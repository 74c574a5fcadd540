from __future__ import annotations

from typing import Any, Iterator, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_validator,
    model_serializer,
)


class _PodModel(BaseModel):
    # Unknown keys (image, env, resources, ...) are carried through verbatim.
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_serializer(mode="wrap")
    def _omit_empty_fields(self, handler: SerializerFunctionWrapHandler) -> Any:
        # only declared fields are dropped when empty; extras are left as given
        data = handler(self)
        for name, info in type(self).model_fields.items():
            for key in (name, info.alias):
                if key in data and data[key] in (None, "", []):
                    del data[key]
        return data


class ContainerPort(_PodModel):
    container_port: int = Field(alias="containerPort", ge=1, le=65535)
    name: Optional[str] = None
    protocol: Optional[str] = None


class VolumeMount(_PodModel):
    name: str
    mount_path: Optional[str] = Field(default=None, alias="mountPath")


class Container(_PodModel):
    name: str = ""
    ports: List[ContainerPort] = Field(default_factory=list)
    volume_mounts: List[VolumeMount] = Field(default_factory=list, alias="volumeMounts")

    @field_validator("name", mode="before")
    @classmethod
    def _null_name(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("ports", "volume_mounts", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class Volume(_PodModel):
    name: str

    @classmethod
    def for_claim(cls, claim_name: str) -> "Volume":
        return cls(name=claim_name, persistentVolumeClaim={"claimName": claim_name})


class PodSpec(_PodModel):
    containers: List[Container] = Field(default_factory=list)
    volumes: List[Volume] = Field(default_factory=list)

    @field_validator("containers", "volumes", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def iter_ports(self) -> Iterator[ContainerPort]:
        for c in self.containers:
            yield from c.ports

    def iter_volume_mounts(self) -> Iterator[VolumeMount]:
        for c in self.containers:
            yield from c.volume_mounts

    def volume_names(self) -> set[str]:
        return {v.name for v in self.volumes}

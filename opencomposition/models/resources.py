from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from opencomposition.models.pod import PodSpec


READ_WRITE_ONCE = "ReadWriteOnce"
SERVICE_TYPE_LOAD_BALANCER = "LoadBalancer"


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ObjectMeta(_ApiModel):
    name: str
    labels: Optional[Dict[str, str]] = None


class TypedResource(_ApiModel):
    # Filled in from the kind registry right before serialization.
    api_version: Optional[str] = Field(default=None, alias="apiVersion")
    kind: Optional[str] = None
    metadata: ObjectMeta


class LabelSelector(_ApiModel):
    match_labels: Dict[str, str] = Field(alias="matchLabels")


class PodTemplateSpec(_ApiModel):
    metadata: ObjectMeta
    spec: PodSpec


class DeploymentSpec(_ApiModel):
    replicas: Optional[int] = None
    selector: LabelSelector
    template: PodTemplateSpec


class Deployment(TypedResource):
    spec: DeploymentSpec


class ServicePort(_ApiModel):
    name: str
    port: int
    target_port: int = Field(alias="targetPort")


class ServiceSpec(_ApiModel):
    selector: Dict[str, str]
    ports: List[ServicePort]
    type: Optional[str] = None  # None => cluster default (ClusterIP)


class Service(TypedResource):
    spec: ServiceSpec


class ResourceRequirements(_ApiModel):
    requests: Dict[str, str]


class PersistentVolumeClaimSpec(_ApiModel):
    access_modes: List[str] = Field(alias="accessModes")
    resources: ResourceRequirements


class PersistentVolumeClaim(TypedResource):
    spec: PersistentVolumeClaimSpec


Resource = Union[Deployment, Service, PersistentVolumeClaim]

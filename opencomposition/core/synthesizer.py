from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from opencomposition.core.exceptions import QuantityFormatError
from opencomposition.models.descriptor import Descriptor, VolumeSpec
from opencomposition.models.pod import ContainerPort, Volume
from opencomposition.models.resources import (
    READ_WRITE_ONCE,
    SERVICE_TYPE_LOAD_BALANCER,
    Deployment,
    DeploymentSpec,
    LabelSelector,
    ObjectMeta,
    PersistentVolumeClaim,
    PersistentVolumeClaimSpec,
    PodTemplateSpec,
    Resource,
    ResourceRequirements,
    Service,
    ServicePort,
    ServiceSpec,
)
from opencomposition.utils.units import parse_quantity


DEFAULT_VOLUME_SIZE = "100Mi"

logger = structlog.get_logger()


def ensure_labels(descriptor: Descriptor) -> None:
    if not descriptor.labels:
        descriptor.labels = {"app": descriptor.name}


def collect_ports(descriptor: Descriptor) -> List[ContainerPort]:
    """All container ports, in container order then port order.

    Repeated port numbers are kept; each repeat is logged as a warning.
    """
    ports: List[ContainerPort] = []
    seen: set[int] = set()
    for p in descriptor.pod_spec.iter_ports():
        if p.container_port in seen:
            logger.warning(
                "duplicate_container_port", app=descriptor.name, port=p.container_port
            )
        seen.add(p.container_port)
        ports.append(p)
    return ports


def build_exposure(descriptor: Descriptor, ports: List[ContainerPort]) -> Optional[Service]:
    if not ports:
        return None

    spec = ServiceSpec(
        selector=descriptor.labels,
        ports=[
            ServicePort(
                name=f"port-{p.container_port}",
                port=p.container_port,
                target_port=p.container_port,
            )
            for p in ports
        ],
    )
    if descriptor.expose:
        spec.type = SERVICE_TYPE_LOAD_BALANCER
        # Ingress generation is not supported; exposure stops at the load balancer.
    return Service(
        metadata=ObjectMeta(name=descriptor.name, labels=descriptor.labels),
        spec=spec,
    )


@dataclass(slots=True)
class VolumePlan:
    pod_volumes: List[Volume] = field(default_factory=list)
    declared: List[VolumeSpec] = field(default_factory=list)
    claimed: List[VolumeSpec] = field(default_factory=list)


def plan_volumes(descriptor: Descriptor, default_size: str = DEFAULT_VOLUME_SIZE) -> VolumePlan:
    """Decide how every volume mount gets backed, without touching the descriptor.

    Each distinct mount name gets one pod volume sourced from a claim of the
    same name, unless the pod already declares a volume by that name. Names
    found in ``persistentVolumes`` are claimed from that declaration; the
    rest get a new declaration of ``default_size``.
    """
    plan = VolumePlan()
    existing_pod_volumes = descriptor.pod_spec.volume_names()
    visited: set[str] = set()

    for vm in descriptor.pod_spec.iter_volume_mounts():
        if vm.name in visited:
            continue
        visited.add(vm.name)

        declared = descriptor.find_persistent_volume(vm.name)

        if vm.name in existing_pod_volumes:
            # user-managed volume; only claim it when explicitly declared
            if declared is not None:
                plan.claimed.append(declared)
            continue

        plan.pod_volumes.append(Volume.for_claim(vm.name))
        if declared is None:
            declared = VolumeSpec(
                name=vm.name,
                size=default_size,
                persistentVolumeClaim={"claimName": vm.name},
            )
            plan.declared.append(declared)
        plan.claimed.append(declared)

    for v in descriptor.persistent_volumes:
        if v.name not in visited:
            logger.warning("unmounted_persistent_volume", app=descriptor.name, volume=v.name)

    return plan


def apply_volume_plan(descriptor: Descriptor, plan: VolumePlan) -> None:
    descriptor.pod_spec.volumes.extend(plan.pod_volumes)
    descriptor.persistent_volumes.extend(plan.declared)


def build_claim(volume: VolumeSpec) -> PersistentVolumeClaim:
    if volume.size is None:
        raise QuantityFormatError(f"volume {volume.name!r}: missing size")
    try:
        size = parse_quantity(volume.size)
    except ValueError as e:
        raise QuantityFormatError(f"volume {volume.name!r}: could not read volume size: {e}") from e
    if size.value < 0:
        raise QuantityFormatError(f"volume {volume.name!r}: size must not be negative")

    return PersistentVolumeClaim(
        metadata=ObjectMeta(name=volume.name),
        spec=PersistentVolumeClaimSpec(
            access_modes=[READ_WRITE_ONCE],
            resources=ResourceRequirements(requests={"storage": size.canonical()}),
        ),
    )


def default_container_name(descriptor: Descriptor) -> None:
    containers = descriptor.pod_spec.containers
    if len(containers) == 1 and not containers[0].name:
        containers[0].name = descriptor.name


def build_workload(descriptor: Descriptor) -> Deployment:
    return Deployment(
        metadata=ObjectMeta(name=descriptor.name, labels=descriptor.labels),
        spec=DeploymentSpec(
            replicas=descriptor.replicas,
            selector=LabelSelector(match_labels=descriptor.labels),
            template=PodTemplateSpec(
                metadata=ObjectMeta(name=descriptor.name, labels=descriptor.labels),
                spec=descriptor.pod_spec,
            ),
        ),
    )


def synthesize(descriptor: Descriptor, *, default_volume_size: str = DEFAULT_VOLUME_SIZE) -> List[Resource]:
    """Expand one descriptor into Deployment, optional Service and claims.

    The descriptor is updated in place: labels are defaulted, missing volumes
    are declared and a lone unnamed container takes the app name.
    """
    ensure_labels(descriptor)

    service = build_exposure(descriptor, collect_ports(descriptor))

    plan = plan_volumes(descriptor, default_size=default_volume_size)
    # claims are built first so a bad size leaves the descriptor untouched
    claims = [build_claim(v) for v in plan.claimed]
    apply_volume_plan(descriptor, plan)

    default_container_name(descriptor)
    deployment = build_workload(descriptor)

    resources: List[Resource] = [r for r in (deployment, service) if r is not None]
    resources.extend(claims)

    logger.debug(
        "synthesized",
        app=descriptor.name,
        services=int(service is not None),
        claims=len(claims),
    )
    return resources

from __future__ import annotations

from pathlib import Path

import pytest

from opencomposition.core.exceptions import ParseError
from opencomposition.parsers.descriptor_parser import (
    expand_paths,
    load_documents,
    parse_descriptor,
)


FIXTURES = Path("tests/fixtures")


def _load(path):
    return [parse_descriptor(doc, source=str(path)) for doc in load_documents(path)]


def test_inline_pod_spec_is_collected():
    (d,) = _load(FIXTURES / "db.yaml")
    assert d.name == "db"
    assert d.replicas == 2
    assert d.expose is True
    assert d.labels == {"tier": "backend", "app": "db"}
    assert [(v.name, v.size) for v in d.persistent_volumes] == [("data", "10Gi")]

    (c,) = d.pod_spec.containers
    assert c.name == "postgres"
    assert [p.container_port for p in c.ports] == [5432]
    assert [vm.name for vm in c.volume_mounts] == ["data", "logs"]
    # fields the models don't know are kept verbatim
    assert c.model_extra["image"] == "postgres:16"
    assert c.model_extra["env"] == [{"name": "POSTGRES_PASSWORD", "value": "example"}]


def test_nested_pod_spec_and_multiple_documents():
    api, worker = _load(FIXTURES / "multi.yaml")
    assert api.name == "api"
    assert api.pod_spec.containers[0].ports[0].container_port == 8000
    assert worker.name == "worker"
    assert worker.pod_spec.containers[0].volume_mounts[0].name == "scratch"


def test_parse_descriptor_from_bytes():
    d = parse_descriptor(b"name: svc\nreplicaCount: 4\ncontainers: [{image: x}]\n")
    assert d.replicas == 4
    assert d.labels == {}
    assert d.persistent_volumes == []


def test_numeric_size_is_read_as_text():
    d = parse_descriptor(
        {"name": "a", "persistentVolumes": [{"name": "v", "size": 1000, "hostPath": {"path": "/x"}}]}
    )
    v = d.persistent_volumes[0]
    assert v.size == "1000"
    assert v.model_extra == {"hostPath": {"path": "/x"}}


def test_missing_name_is_a_parse_error():
    with pytest.raises(ParseError) as exc:
        _load(FIXTURES / "invalid.yaml")
    assert exc.value.stage == "parse"
    assert exc.value.source == str(FIXTURES / "invalid.yaml")


@pytest.mark.parametrize(
    "text",
    [
        "name: [unclosed",
        "- just\n- a list\n",
        "name: app\ncontainers:\n  - ports:\n      - containerPort: http\n",
    ],
)
def test_malformed_documents(text):
    with pytest.raises(ParseError):
        parse_descriptor(text, source="inline")


def test_missing_file():
    with pytest.raises(ParseError, match="File not found"):
        _load("does/not/exist.yaml")


def test_expand_paths_splits_commas():
    assert expand_paths(["a.yaml,b.yaml", "c.yaml", " d.yaml , "]) == [
        "a.yaml",
        "b.yaml",
        "c.yaml",
        "d.yaml",
    ]


def test_keys_without_values_read_as_empty():
    d = parse_descriptor(
        b"name: app\nexpose:\nlabels:\npersistentVolumes:\ncontainers:\n"
        b"  - image: x\n    name:\n    ports:\n    volumeMounts:\nvolumes:\n"
    )
    assert d.labels == {}
    assert d.expose is False
    assert d.persistent_volumes == []
    assert d.pod_spec.volumes == []
    (c,) = d.pod_spec.containers
    assert c.name == ""
    assert c.ports == []
    assert c.volume_mounts == []

    nested = parse_descriptor(b"name: app\npodSpec:\n")
    assert nested.pod_spec.containers == []

    bare = parse_descriptor(b"name: app\ncontainers:\n")
    assert bare.pod_spec.containers == []

from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest
import yaml

from opencomposition.core.exceptions import ComposerError, QuantityFormatError, UnresolvableResourceKind
from opencomposition.core.orchestrator import ConvertConfig, convert
from opencomposition.core.registry import KindRegistry
from opencomposition.models.resources import Deployment


FIXTURES = Path("tests/fixtures")


def _kinds_and_names(text: str):
    return [(d["kind"], d["metadata"]["name"]) for d in yaml.safe_load_all(text) if d]


def test_convert_yaml_in_generation_order():
    sink = io.StringIO()
    report = convert([str(FIXTURES / "db.yaml")], ConvertConfig(), sink)
    assert report.ok
    assert report.resource_count == 4
    assert _kinds_and_names(sink.getvalue()) == [
        ("Deployment", "db"),
        ("Service", "db"),
        ("PersistentVolumeClaim", "data"),
        ("PersistentVolumeClaim", "logs"),
    ]


def test_failed_descriptor_is_skipped_and_reported():
    sink = io.StringIO()
    paths = f"{FIXTURES / 'bad_size.yaml'},{FIXTURES / 'web.yaml'}"
    report = convert([paths], ConvertConfig(), sink)

    assert not report.ok
    assert report.converted == [str(FIXTURES / "web.yaml")]
    (failure,) = report.failures
    assert isinstance(failure, QuantityFormatError)
    assert failure.stage == "synthesize"
    assert failure.source == str(FIXTURES / "bad_size.yaml")
    # nothing from the failed descriptor reaches the output
    assert _kinds_and_names(sink.getvalue()) == [("Deployment", "web"), ("Service", "web")]


def test_fail_fast_stops_at_first_failure():
    sink = io.StringIO()
    paths = [str(FIXTURES / "invalid.yaml"), str(FIXTURES / "web.yaml")]
    report = convert(paths, ConvertConfig(fail_fast=True), sink)
    assert len(report.failures) == 1
    assert report.converted == []
    assert sink.getvalue() == ""


def test_multi_document_sources_are_indexed():
    sink = io.StringIO()
    report = convert([str(FIXTURES / "multi.yaml")], ConvertConfig(output="json"), sink)
    assert report.converted == [f"{FIXTURES / 'multi.yaml'}[0]", f"{FIXTURES / 'multi.yaml'}[1]"]
    data = json.loads(sink.getvalue())
    assert data["kind"] == "List"
    assert [(i["kind"], i["metadata"]["name"]) for i in data["items"]] == [
        ("Deployment", "api"),
        ("Service", "api"),
        ("Deployment", "worker"),
        ("PersistentVolumeClaim", "scratch"),
    ]


def test_unresolvable_kind_fails_before_output():
    registry = KindRegistry()
    registry.register(Deployment, "apps/v1", "Deployment")
    sink = io.StringIO()
    report = convert([str(FIXTURES / "web.yaml")], ConvertConfig(), sink, registry=registry)
    (failure,) = report.failures
    assert isinstance(failure, UnresolvableResourceKind)
    assert failure.stage == "serialize"
    assert sink.getvalue() == ""


def test_invalid_config_is_rejected():
    with pytest.raises(ComposerError):
        convert([], ConvertConfig(output="xml"), io.StringIO())
    with pytest.raises(QuantityFormatError):
        convert([], ConvertConfig(default_volume_size="big"), io.StringIO())


def test_json_output_is_one_list_across_files():
    sink = io.StringIO()
    paths = [str(FIXTURES / "web.yaml"), str(FIXTURES / "bad_size.yaml"), str(FIXTURES / "db.yaml")]
    report = convert(paths, ConvertConfig(output="json"), sink)
    assert len(report.failures) == 1
    data = json.loads(sink.getvalue())
    assert [i["metadata"]["name"] for i in data["items"] if i["kind"] == "Deployment"] == [
        "web",
        "db",
    ]


def test_fail_fast_still_writes_collected_json():
    sink = io.StringIO()
    paths = [str(FIXTURES / "web.yaml"), str(FIXTURES / "invalid.yaml"), str(FIXTURES / "db.yaml")]
    report = convert(paths, ConvertConfig(output="json", fail_fast=True), sink)
    assert report.converted == [str(FIXTURES / "web.yaml")]
    data = json.loads(sink.getvalue())
    assert {i["metadata"]["name"] for i in data["items"]} == {"web"}


def test_log_level_follows_debug_flag():
    assert ConvertConfig().log_level == logging.WARNING
    assert ConvertConfig(debug=True).log_level == logging.DEBUG

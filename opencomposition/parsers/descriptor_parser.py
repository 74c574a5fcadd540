from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Optional

import structlog
import yaml
from pydantic import ValidationError

from opencomposition.core.exceptions import ParseError
from opencomposition.models.descriptor import Descriptor


logger = structlog.get_logger()


def expand_paths(paths: Iterable[str]) -> List[str]:
    """Split comma-joined file arguments (``a.yaml,b.yaml``) into single paths."""
    out: List[str] = []
    for p in paths:
        out.extend(part.strip() for part in str(p).split(",") if part.strip())
    return out


def parse_descriptor(data: bytes | str | dict, *, source: Optional[str] = None) -> Descriptor:
    """Parse a single descriptor document (YAML text or an already-loaded mapping)."""
    if isinstance(data, (bytes, str)):
        try:
            doc = yaml.safe_load(data)
        except yaml.YAMLError as e:  # noqa: BLE001
            raise ParseError(f"YAML parse error: {e}", source=source, stage="parse") from e
    else:
        doc = data
    return _validate(doc, source)


def load_documents(path: str | Path) -> List[Any]:
    """Read the non-empty YAML documents of ``path`` without validating them."""
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}", source=str(path), stage="parse")
    try:
        with path.open("r", encoding="utf-8") as f:
            docs = [d for d in yaml.safe_load_all(f) if d is not None]
    except yaml.YAMLError as e:  # noqa: BLE001
        raise ParseError(f"YAML parse error in {path}: {e}", source=str(path), stage="parse") from e
    if not docs:
        raise ParseError("no descriptor found", source=str(path), stage="parse")
    return docs


def _validate(doc: Any, source: Optional[str]) -> Descriptor:
    if not isinstance(doc, dict):
        raise ParseError(
            f"descriptor must be a mapping, got {type(doc).__name__}", source=source, stage="parse"
        )
    try:
        descriptor = Descriptor.model_validate(doc)
    except ValidationError as e:
        raise ParseError(
            f"could not unmarshal into internal struct: {e}", source=source, stage="parse"
        ) from e
    logger.debug("descriptor_parsed", source=source, app=descriptor.name)
    return descriptor

"""
Topology loader.

A topology document lists leaf groups by path (YAML or JSON):

    buckets:
      - path: /region:eu/rack:1
        nodes:
          - {id: 1, capacity: 10, price: 2}

We validate it into typed Pydantic models and then insert every entry into a fresh
root bucket. Any problem (bad YAML, bad node payload, malformed path) surfaces as a
`TopologyError` so callers only need to handle one exception type.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from netweight.domain.models import TopologyDocument
from netweight.topology.bucket import Bucket, TopologyError

logger = logging.getLogger(__name__)


def load_topology(data: Mapping[str, Any]) -> Bucket:
    """Build a root bucket from a parsed topology mapping."""
    try:
        document = TopologyDocument.model_validate(data)
    except ValidationError as exc:
        raise TopologyError(f"Invalid topology document: {exc}") from exc

    root = Bucket()
    for entry in document.buckets:
        root.add_bucket(entry.path, entry.nodes)
        logger.debug("Added %d nodes at %s", len(entry.nodes), entry.path)
    return root


def load_topology_file(path: str | Path) -> Bucket:
    """Load a YAML/JSON topology file (JSON is valid YAML)."""
    p = Path(path).expanduser()
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise TopologyError(f"Cannot parse topology file {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise TopologyError(f"Invalid topology root object in {p}; expected a mapping.")
    return load_topology(data)

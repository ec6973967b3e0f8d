"""
Small explainability formatting helpers.

Used by the CLI to print compact summaries of weighting results.
"""

from __future__ import annotations

from netweight.domain.models import Node
from netweight.scoring.composite import WeightFunc
from netweight.topology.bucket import Bucket


def bucket_line(path: str, bucket: Bucket) -> str:
    """Render one bucket as `path  weight=... nodes=...`."""
    weight = "n/a" if bucket.weight is None else f"{bucket.weight:.4f}"
    return f"{path}  weight={weight} nodes={len(bucket.nodes)}"


def node_line(node: Node, weight_func: WeightFunc) -> str:
    """Render one node with its raw attributes and composite score."""
    return f"id={node.id} capacity={node.capacity:g} price={node.price:g} score={weight_func(node):.4f}"

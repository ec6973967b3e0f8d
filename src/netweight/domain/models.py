"""
Domain models (Pydantic).

These types are the stable "contract" between the topology loader, the weighting
engine and the CLI:
- storage nodes with the attributes used for weighting (`Node`)
- on-disk topology descriptions (`TopologyDocument`)

Node attributes are validated once at construction so the scoring code can assume
non-negative numbers everywhere.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Node(BaseModel):
    """A storage node: identifier plus the two weighting attributes."""

    model_config = ConfigDict(frozen=True)

    id: int
    capacity: float = Field(0.0, ge=0)
    price: float = Field(0.0, ge=0)

    @classmethod
    def of(cls, node_id: int, capacity: float, price: float) -> "Node":
        """Positional shorthand used when building topologies in code."""
        return cls(id=node_id, capacity=capacity, price=price)


class TopologyEntry(BaseModel):
    """One leaf group of a topology document: a bucket path and the nodes it holds."""

    path: str
    nodes: list[Node] = Field(default_factory=list)

    @field_validator("path")
    @classmethod
    def _strip_path(cls, path: str) -> str:
        return path.strip()


class TopologyDocument(BaseModel):
    """Root object of a YAML/JSON topology file."""

    buckets: list[TopologyEntry] = Field(default_factory=list)

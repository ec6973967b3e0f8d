"""
Bucket tree.

A bucket is one level of the storage topology (region, rack, ...). It is either:
- a leaf group: holds nodes directly and has no children, or
- an internal group: has children; its `nodes` list is only filled by `fill_nodes()`.

Buckets are addressed by paths made of `key:value` segments, e.g.
`/region:eu/rack:1`. The tree supports two traversals:
- `traverse()`: flat aggregation over every descendant node (after `fill_nodes()`)
- `traverse_tree()`: post-order rollup that writes `weight` on every bucket

Contract notes:
- The tree is not thread-safe; callers serialize `traverse_tree()` on one tree.
- An aggregator passed to `traverse()` belongs to that call; `traverse_tree()` asks
  the factory for a fresh one per bucket.
"""

from __future__ import annotations

from typing import Any, Iterator

from netweight.domain.models import Node
from netweight.scoring.aggregators import Aggregator, AggregatorFactory
from netweight.scoring.composite import WeightFunc

PATH_SEPARATOR = "/"
PAIR_SEPARATOR = ":"


class TopologyError(ValueError):
    """Raised when a topology path or document is structurally invalid."""


def parse_path(path: str) -> list[tuple[str, str]]:
    """Split `/key:value/key:value` into `(key, value)` pairs.

    `""` and `"/"` address the bucket the path is applied to.
    """
    text = path.strip()
    if text.startswith(PATH_SEPARATOR):
        text = text[len(PATH_SEPARATOR):]
    if not text:
        return []

    pairs: list[tuple[str, str]] = []
    seen: set[str] = set()
    for segment in text.split(PATH_SEPARATOR):
        if not segment:
            raise TopologyError(f"Empty segment in bucket path '{path}'")
        if PAIR_SEPARATOR not in segment:
            raise TopologyError(f"Segment '{segment}' in '{path}' is not of the form key:value")
        key, value = segment.split(PAIR_SEPARATOR, 1)
        key, value = key.strip(), value.strip()
        if not key or not value:
            raise TopologyError(f"Segment '{segment}' in '{path}' has an empty key or value")
        if key in seen:
            raise TopologyError(f"Key '{key}' appears more than once in '{path}'")
        seen.add(key)
        pairs.append((key, value))
    return pairs


class Bucket:
    def __init__(
        self,
        key: str = "",
        value: str = "",
        *,
        nodes: list[Node] | None = None,
        children: list[Bucket] | None = None,
    ) -> None:
        if nodes and children:
            raise TopologyError("A bucket holds either nodes or child buckets, not both")
        self.key = key
        self.value = value
        self.nodes: list[Node] = list(nodes or [])
        self.children: list[Bucket] = list(children or [])
        # Undefined until the first traverse_tree().
        self.weight: float | None = None

    @property
    def name(self) -> str:
        if not self.key:
            return ""
        return f"{self.key}{PAIR_SEPARATOR}{self.value}"

    @property
    def is_leaf_group(self) -> bool:
        return not self.children

    def _child(self, key: str, value: str) -> Bucket | None:
        for child in self.children:
            if child.key == key and child.value == value:
                return child
        return None

    def add_bucket(self, path: str, nodes: list[Node]) -> Bucket:
        """Insert `nodes` at `path`, creating intermediate buckets as needed.

        Returns the leaf group the nodes were added to.
        """
        pairs = parse_path(path)
        current = self
        for depth, (key, value) in enumerate(pairs):
            child = current._child(key, value)
            if child is None:
                if not current.children and current.nodes:
                    where = PATH_SEPARATOR + PATH_SEPARATOR.join(f"{k}:{v}" for k, v in pairs[:depth])
                    raise TopologyError(f"Cannot add buckets below leaf group '{where}' (path '{path}')")
                child = Bucket(key, value)
                current.children.append(child)
            current = child

        if current.children:
            raise TopologyError(f"Cannot add nodes to internal bucket at '{path}'")
        current.nodes.extend(nodes)
        return current

    def fill_nodes(self) -> list[Node]:
        """Flatten descendant nodes into every internal bucket (bottom-up, idempotent)."""
        if self.children:
            flattened: list[Node] = []
            for child in self.children:
                flattened.extend(child.fill_nodes())
            self.nodes = flattened
        return self.nodes

    def traverse(self, aggregator: Aggregator, weight_func: WeightFunc) -> Aggregator:
        """Feed `weight_func(node)` for every (flattened) node into `aggregator`."""
        for node in self.nodes:
            aggregator.add(weight_func(node))
        return aggregator

    def traverse_tree(self, factory: AggregatorFactory, weight_func: WeightFunc) -> float:
        """Fill `weight` on this bucket and every descendant, children first.

        Internal buckets aggregate their children's finished weights; leaf groups
        aggregate `weight_func` over their own nodes.
        """
        if self.children:
            for child in self.children:
                child.traverse_tree(factory, weight_func)
            agg = factory.new()
            for child in self.children:
                agg.add(child.weight)
        else:
            agg = factory.new()
            for node in self.nodes:
                agg.add(weight_func(node))
        self.weight = agg.compute()
        return self.weight

    def find(self, path: str) -> Bucket | None:
        """Return the bucket at `path` (relative to this one), or None."""
        current: Bucket | None = self
        for key, value in parse_path(path):
            current = current._child(key, value)
            if current is None:
                return None
        return current

    def walk(self, prefix: str = "") -> Iterator[tuple[str, Bucket]]:
        """Yield `(path, bucket)` pairs in pre-order, starting with this bucket."""
        path = f"{prefix}{PATH_SEPARATOR}{self.name}" if self.name else (prefix or PATH_SEPARATOR)
        yield path, self
        child_prefix = "" if path == PATH_SEPARATOR else path
        for child in self.children:
            yield from child.walk(child_prefix)

    def sorted_children(self) -> list[Bucket]:
        """Children ordered by weight, highest first; ties keep insertion order."""
        return sorted(self.children, key=lambda b: b.weight if b.weight is not None else 0.0, reverse=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "weight": self.weight,
            "nodes": [n.id for n in self.nodes],
            "children": [c.to_dict() for c in self.children],
        }

    def __repr__(self) -> str:
        return (
            f"Bucket({self.name or '/'!r}, nodes={len(self.nodes)}, "
            f"children={len(self.children)}, weight={self.weight!r})"
        )

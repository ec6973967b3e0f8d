from __future__ import annotations

# This module is the orchestrator for a weighting run.
# It wires together:
# - the bucket tree (topology)
# - flat traversals that produce the reference statistics for each attribute
# - normalizers + composite weight function (scoring)
# - the hierarchical rollup that writes `weight` on every bucket
#
# The tree and scoring layers stay pure; settings and logging live here.

import logging
from dataclasses import dataclass

from netweight.config.settings import Settings, get_settings
from netweight.domain.models import Node
from netweight.scoring.aggregators import aggregator_factory
from netweight.scoring.composite import WeightFunc, capacity_weight, new_weight_func, price_weight
from netweight.scoring.normalizers import REFERENCE_AGGREGATOR, Normalizer, new_normalizer
from netweight.topology.bucket import Bucket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightingReport:
    """What a weighting run used, for explainability and debugging."""

    capacity_reference: float
    price_reference: float
    capacity_norm: Normalizer
    price_norm: Normalizer
    weight_func: WeightFunc
    rollup_aggregator: str
    node_count: int


def _reference_normalizer(root: Bucket, normalizer_name: str, extract: WeightFunc, *, iqr_k: float) -> tuple[float, Normalizer]:
    # Each normalizer is centred on a flat statistic over every node of the tree.
    agg_name = REFERENCE_AGGREGATOR[normalizer_name]
    agg = root.traverse(aggregator_factory(agg_name, iqr_k=iqr_k).new(), extract)
    reference = agg.compute()
    return reference, new_normalizer(normalizer_name, reference)


def build_weight_func(root: Bucket, settings: Settings) -> WeightingReport:
    """Flatten the tree and derive the composite weight function from it."""
    cfg = settings.weighting
    root.fill_nodes()
    if not root.nodes:
        logger.warning("Topology has no nodes; every weight will be 0.")

    cap_ref, cap_norm = _reference_normalizer(root, cfg.capacity.normalizer, capacity_weight, iqr_k=cfg.iqr_k)
    price_ref, price_norm = _reference_normalizer(root, cfg.price.normalizer, price_weight, iqr_k=cfg.iqr_k)

    return WeightingReport(
        capacity_reference=cap_ref,
        price_reference=price_ref,
        capacity_norm=cap_norm,
        price_norm=price_norm,
        weight_func=new_weight_func(cap_norm, price_norm),
        rollup_aggregator=cfg.rollup_aggregator,
        node_count=len(root.nodes),
    )


def compute_weights(root: Bucket, settings: Settings | None = None) -> WeightingReport:
    """Run a full weighting pass: flatten, normalize, then roll weights up the tree."""
    settings = settings or get_settings()
    report = build_weight_func(root, settings)

    factory = aggregator_factory(report.rollup_aggregator, iqr_k=settings.weighting.iqr_k)
    root.traverse_tree(factory, report.weight_func)

    logger.info(
        "Weighted %d nodes: capacity ref=%.4f (%r), price ref=%.4f (%r), rollup=%s, root weight=%.4f",
        report.node_count,
        report.capacity_reference,
        report.capacity_norm,
        report.price_reference,
        report.price_norm,
        report.rollup_aggregator,
        root.weight,
    )
    return report


def rank_nodes(nodes: list[Node], weight_func: WeightFunc) -> list[Node]:
    """Order nodes by score, highest first; equal scores keep input order."""
    return sorted(nodes, key=weight_func, reverse=True)

"""
Weight functions.

A weight function maps a `Node` to one scalar score. Two raw extractors are the
building blocks; `new_weight_func` composes two normalizers into the score used for
ranking:

    score(node) = capacity_norm(node.capacity) * price_norm(node.price)

The product means a node has to be good on both axes: a near-zero factor on either
side pulls the whole score down.
"""

from __future__ import annotations

from typing import Callable

from netweight.domain.models import Node
from netweight.scoring.normalizers import Normalizer

WeightFunc = Callable[[Node], float]


def capacity_weight(node: Node) -> float:
    """Raw capacity of a node."""
    return node.capacity


def price_weight(node: Node) -> float:
    """Raw price of a node."""
    return node.price


def new_weight_func(capacity_norm: Normalizer, price_norm: Normalizer) -> WeightFunc:
    """Compose normalized capacity and normalized price into a single score."""

    def weight(node: Node) -> float:
        return capacity_norm.normalize(capacity_weight(node)) * price_norm.normalize(price_weight(node))

    return weight

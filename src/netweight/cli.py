"""
netweight CLI entrypoint.

This CLI is intended for quick local inspection of a topology file.
It delegates all weighting logic to `netweight.weighting.pipeline`.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from netweight.config.overrides import apply_settings_overrides, parse_override_pairs
from netweight.config.settings import Settings, get_settings
from netweight.core.logging import configure_logging
from netweight.scoring.explain import bucket_line, node_line
from netweight.topology.bucket import Bucket, TopologyError
from netweight.topology.loader import load_topology_file
from netweight.weighting.pipeline import compute_weights, rank_nodes


def _run_settings(args: argparse.Namespace) -> Settings:
    overrides = parse_override_pairs(args.set)
    if getattr(args, "aggregator", None):
        overrides.setdefault("weighting", {})["rollup_aggregator"] = args.aggregator
    if getattr(args, "iqr_k", None) is not None:
        overrides.setdefault("weighting", {})["iqr_k"] = float(args.iqr_k)
    return apply_settings_overrides(get_settings(), overrides)


def _load(args: argparse.Namespace) -> Bucket | None:
    try:
        return load_topology_file(args.topology)
    except (TopologyError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return None


def _cmd_weigh(args: argparse.Namespace) -> int:
    """Handle the `weigh` subcommand."""
    settings = _run_settings(args)
    root = _load(args)
    if root is None:
        return 2

    compute_weights(root, settings)

    if args.json:
        print(json.dumps(root.to_dict(), indent=2))
        return 0

    for path, bucket in root.walk():
        print(bucket_line(path, bucket))
    return 0


def _cmd_rank(args: argparse.Namespace) -> int:
    """Handle the `rank` subcommand."""
    settings = _run_settings(args)
    root = _load(args)
    if root is None:
        return 2

    report = compute_weights(root, settings)
    ranked = rank_nodes(root.nodes, report.weight_func)

    if args.json:
        payload = [{**n.model_dump(mode="json"), "score": report.weight_func(n)} for n in ranked]
        print(json.dumps(payload, indent=2))
        return 0

    for i, node in enumerate(ranked, start=1):
        print(f"{i:>3}. {node_line(node, report.weight_func)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the netweight CLI."""
    parser = argparse.ArgumentParser(prog="netweight")
    sub = parser.add_subparsers(dest="command", required=True)

    weigh = sub.add_parser("weigh", help="Compute and print the weight of every bucket.")
    weigh.add_argument("topology", help="YAML/JSON topology file")
    weigh.add_argument(
        "--aggregator",
        default=None,
        choices=["mean", "mean_sum", "min", "max", "mean_iqr"],
        help="Rollup aggregator (overrides weighting.rollup_aggregator).",
    )
    weigh.add_argument("--iqr-k", dest="iqr_k", type=float, default=None, help="Fence multiplier for mean_iqr.")
    weigh.add_argument("--set", action="append", default=[], help="Override a weighting setting: KEY=VALUE")
    weigh.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    weigh.set_defaults(func=_cmd_weigh)

    rank = sub.add_parser("rank", help="Order every node of the topology by composite score.")
    rank.add_argument("topology", help="YAML/JSON topology file")
    rank.add_argument("--set", action="append", default=[], help="Override a weighting setting: KEY=VALUE")
    rank.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    rank.set_defaults(func=_cmd_rank)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m netweight.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except ValueError as exc:
        # Bad --set payloads and settings that fail validation.
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

"""Command line over the XML sample data.

    python -m warehouse_app pick --product 1 --quantity 250
    python -m warehouse_app validate --item 1:120 --item 2:48 --pallet 1
    python -m warehouse_app hierarchy --product 1
    python -m warehouse_app compose --item 1:120 --name "Water mix" --user 7
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from importlib import metadata
from typing import Any, Dict, List, Optional

from packaging_core.errors import PackagingCoreError
from packaging_core.models import CompositionRequest

from .data import JsonCompositionRepository
from .services import build_services

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _get_app_version() -> str:
    for distribution in ("packaging-composition", "warehouse_app"):
        try:
            return metadata.version(distribution)
        except metadata.PackageNotFoundError:
            continue
    return "dev"


def parse_item(value: str) -> Dict[str, Any]:
    """Parse ``PRODUCT:QUANTITY[:PACKAGING]`` into a request product mapping."""
    parts = value.split(":")
    if len(parts) not in (2, 3):
        raise argparse.ArgumentTypeError(
            f"expected PRODUCT:QUANTITY[:PACKAGING], got {value!r}"
        )
    try:
        item: Dict[str, Any] = {"product_id": int(parts[0]), "quantity": parts[1]}
        if len(parts) == 3:
            item["packaging_type_id"] = int(parts[2])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid item {value!r}: {exc}") from exc
    return item


def _request_from_args(args: argparse.Namespace) -> CompositionRequest:
    constraints = {
        "max_weight": args.max_weight,
        "max_height": args.max_height,
        "max_volume": args.max_volume,
    }
    payload: Dict[str, Any] = {"products": args.items, "pallet_id": args.pallet}
    if any(value is not None for value in constraints.values()):
        payload["constraints"] = constraints
    return CompositionRequest.from_dict(payload)


def _add_request_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--item",
        dest="items",
        action="append",
        type=parse_item,
        required=True,
        help="PRODUCT:QUANTITY[:PACKAGING], quantity in base units; repeatable",
    )
    parser.add_argument("--pallet", type=int, help="Pallet id (default: first available)")
    parser.add_argument("--max-weight", type=float, help="Weight limit override in kg")
    parser.add_argument("--max-height", type=float, help="Height limit override in cm")
    parser.add_argument("--max-volume", type=float, help="Volume limit override in m3")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="warehouse_app", description="Packaging hierarchy, picking and pallet composition"
    )
    parser.add_argument("--version", action="version", version=_get_app_version())
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS)
    commands = parser.add_subparsers(dest="command", required=True)

    pick = commands.add_parser("pick", help="Plan which packages to pick for a quantity")
    pick.add_argument("--product", type=int, required=True)
    pick.add_argument("--quantity", required=True, help="Requested base units")

    validate = commands.add_parser("validate", help="Check a pallet composition against its limits")
    _add_request_arguments(validate)

    hierarchy = commands.add_parser("hierarchy", help="Show the packaging tree of a product")
    hierarchy.add_argument("--product", type=int, required=True)

    compose = commands.add_parser("compose", help="Create a draft composition and print its report")
    _add_request_arguments(compose)
    compose.add_argument("--name", required=True)
    compose.add_argument("--description")
    compose.add_argument("--user", type=int, default=1)
    return parser


def run(args: argparse.Namespace) -> Dict[str, Any]:
    if args.command == "compose":
        services = build_services(JsonCompositionRepository())
    else:
        services = build_services()

    if args.command == "pick":
        return services.picking.optimize_picking_by_packaging(args.product, args.quantity).to_dict()
    if args.command == "hierarchy":
        roots = services.hierarchy.get_hierarchy(args.product)
        return {"product_id": args.product, "hierarchy": [root.to_dict() for root in roots]}
    if args.command == "validate":
        return services.planner.validate_composition_constraints(_request_from_args(args)).to_dict()
    if args.command == "compose":
        composition = services.lifecycle.create(
            _request_from_args(args), args.user, args.name, args.description
        )
        return services.lifecycle.generate_report(composition.id).to_dict()
    raise ValueError(f"unknown command {args.command!r}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    try:
        output = run(args)
    except PackagingCoreError as exc:
        logger.error("%s failed: %s", args.command, exc)
        json.dump(exc.to_dict(), sys.stderr, ensure_ascii=False, indent=2)
        sys.stderr.write("\n")
        return 1
    json.dump(output, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Command-line entry point: pick the smallest box for a request file."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from cartonfit.config import EngineConfig, load_engine_config
from cartonfit.io.schemas import (
    BoxSchema,
    PlacementSchema,
    SelectionResultSchema,
    load_request,
)
from cartonfit.monitoring.metrics import PackingMetrics, export_to_csv, format_summary
from cartonfit.monitoring.telegram_notifier import (
    format_failure,
    format_selection_result,
    send_telegram,
)
from cartonfit.runner.dataset import generate_products
from cartonfit.session import ComputationTimeoutError, NoFittingBoxError, PackingSession

EXIT_OK = 0
EXIT_BAD_INPUT = 1
EXIT_NO_FIT = 2
EXIT_TIMEOUT = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cartonfit-run",
        description="Choose the smallest fitting box and a placement sequence",
    )
    parser.add_argument("request", help="Request file (JSON or YAML) with boxes and products")
    parser.add_argument("--config", help="YAML file with tuning overrides")
    parser.add_argument("--output", help="Write the selection result as JSON")
    parser.add_argument("--csv", help="Write the per-step placement table as CSV")
    parser.add_argument(
        "--random-products",
        type=int,
        metavar="N",
        help="Replace the request's products with N generated ones",
    )
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for generated products and shuffled searches")
    parser.add_argument("--notify", action="store_true",
                        help="Send the outcome to Telegram (needs TELEGRAM_* env vars)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def _notify(message: str) -> None:
    if not asyncio.run(send_telegram(message)):
        print("Telegram notification not sent")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        request = load_request(args.request)
        engine_config = load_engine_config(args.config) if args.config else EngineConfig()
    except (OSError, ValueError, ValidationError) as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    if args.seed is not None:
        engine_config = engine_config.with_seed(args.seed)

    boxes, products = request.to_domain()
    if args.random_products is not None:
        products = generate_products(args.random_products, seed=args.seed)

    print(f"Selecting from {len(boxes)} boxes for {len(products)} products")

    with PackingSession(boxes, engine_config) as session:
        try:
            result = session.run(products)
        except NoFittingBoxError as exc:
            print(f"✗ {exc}")
            if args.notify:
                _notify(format_failure(str(exc), len(products), len(boxes)))
            return EXIT_NO_FIT
        except ComputationTimeoutError as exc:
            print(f"✗ {exc}")
            if args.notify:
                _notify(format_failure(str(exc), len(products), len(boxes)))
            return EXIT_TIMEOUT
        runtime = session.last_runtime or 0.0

    if result is None:
        print("No products selected; nothing to pack")
        return EXIT_OK

    metrics = PackingMetrics.from_result(result, runtime_seconds=runtime)
    print(format_summary(metrics))
    for item in result.placed:
        print(f"  {item.step + 1:3d}. {item.product_id:<12} at "
              f"({item.x:g}, {item.y:g}, {item.z:g}) size {item.w:g}x{item.d:g}x{item.h:g}")

    if args.output:
        schema = SelectionResultSchema(
            box=BoxSchema(**result.box.to_dict()),
            strategy=result.strategy,
            fill_rate=min(1.0, metrics.fill_rate),
            placements=[PlacementSchema.from_item(p) for p in result.placed],
        )
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(schema.model_dump_json(indent=2), encoding="utf-8")
        print(f"✓ Saved result to {path}")

    if args.csv:
        export_to_csv(metrics, args.csv)
        print(f"✓ Saved placements to {args.csv}")

    if args.notify:
        _notify(format_selection_result(metrics))

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

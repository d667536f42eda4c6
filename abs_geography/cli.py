"""CLI entrypoint for the ABS geography resolver."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from abs_geography.common.config_loader import load_config
from abs_geography.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from abs_geography.common.errors import GeographyError
from abs_geography.common.fs import dump_json
from abs_geography.common.ids import generate_run_id
from abs_geography.common.logging import build_logger, log_event
from abs_geography.resolver import CoordinateStatus, PostcodeStatus, build_resolver
from abs_geography.stats.sdmx import AbsDataClient


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="WARN", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status")

    postcode = sub.add_parser("postcode")
    postcode.add_argument("postcode")

    coordinate = sub.add_parser("coordinate")
    coordinate.add_argument("latitude")
    coordinate.add_argument("longitude")

    observation = sub.add_parser("observation")
    observation.add_argument("dataflow")
    observation.add_argument("--key", default="all")
    observation.add_argument("--start-period", default=None)
    observation.add_argument("--end-period", default=None)

    return parser.parse_args(argv)


def _emit(payload: dict) -> None:
    sys.stdout.write(dump_json(payload))
    sys.stdout.write("\n")


def _postcode_exit(status: PostcodeStatus) -> int:
    if status is PostcodeStatus.OK:
        return EXIT_SUCCESS
    if status is PostcodeStatus.NOT_FOUND:
        return EXIT_PARTIAL
    return EXIT_HARD_FAIL


def _coordinate_exit(status: CoordinateStatus) -> int:
    if status is CoordinateStatus.OK:
        return EXIT_SUCCESS
    if status is CoordinateStatus.NO_MATCH:
        return EXIT_PARTIAL
    return EXIT_HARD_FAIL


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, data_dir=log_dir, level=args.log_level)
    config = load_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)

    if args.command == "observation":
        with AbsDataClient(config.abs_api) as client:
            value = client.first_observation(
                args.dataflow,
                start_period=args.start_period,
                end_period=args.end_period,
                key=args.key,
            )
        _emit({"dataflow": args.dataflow, "key": args.key, "value": value})
        return EXIT_SUCCESS if value is not None else EXIT_PARTIAL

    resolver = build_resolver(config, logger=logger)
    status = resolver.status()
    log_event(
        logger,
        "resolver initialised",
        run_id=run_id,
        component="cli",
        event="RESOLVER_INITIALISED",
        status="ok" if not status.last_errors else "partial",
    )

    if args.command == "status":
        _emit(status.to_dict())
        return EXIT_PARTIAL if status.last_errors else EXIT_SUCCESS

    if args.command == "postcode":
        result = resolver.resolve_postcode(args.postcode)
        _emit(result.to_dict())
        return _postcode_exit(result.status)

    if args.command == "coordinate":
        result = resolver.resolve_coordinate(args.latitude, args.longitude)
        _emit(result.to_dict())
        return _coordinate_exit(result.status)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except GeographyError as exc:
        sys.stderr.write(f"{exc.error_code}: {exc}\n")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from collection_curator.application.registry import Registry
from collection_curator.application.run_context import OPERATION_COHORT, OPERATION_RESORT, RunContext
from collection_curator.application.runner import Runner
from collection_curator.app.factory import create_adapters
from collection_curator.domain.common.timestamps import parse_timestamp
from collection_curator.domain.settings_record import parse_settings_record
from collection_curator.observability.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Collection Curator CLI")
    subparsers = parser.add_subparsers(dest="command")

    cohort_parser = subparsers.add_parser("run-cohort", help="Classify a cohort and sync its tag once")
    cohort_parser.add_argument("--tenant", required=True, dest="tenant_id")
    cohort_parser.add_argument("--cohort", required=True, choices=Registry().names())
    cohort_parser.add_argument("--as-of", dest="as_of_ts")
    cohort_parser.add_argument("--correlation-id", dest="correlation_id")

    resort_parser = subparsers.add_parser("resort", help="Compose and apply the order of a manual collection")
    resort_parser.add_argument("--tenant", required=True, dest="tenant_id")
    resort_parser.add_argument("--collection", required=True, dest="collection_id")
    resort_parser.add_argument("--as-of", dest="as_of_ts")
    resort_parser.add_argument("--correlation-id", dest="correlation_id")

    validate_parser = subparsers.add_parser("validate-settings", help="Validate a tenant settings JSON file")
    validate_parser.add_argument("--file", required=True, dest="path")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    return parser


def serve(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("collection_curator.app.main:app", host=host, port=port)


def validate_settings_file(path: str) -> int:
    """
    Validate every tenant document in a settings file.

    The file maps tenant ids to settings documents, as written by the JSON
    file settings store.

    Returns:
        0 if every document is valid, 1 otherwise
    """
    try:
        documents = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"ERROR: Cannot read {path}: {e}", file=sys.stderr)
        return 1
    if not isinstance(documents, dict):
        print(f"ERROR: {path} must contain an object keyed by tenant id", file=sys.stderr)
        return 1

    errors: list[str] = []
    for tenant_id, document in sorted(documents.items()):
        try:
            parse_settings_record(document)
        except ValueError as e:
            errors.append(f"{tenant_id}: {e}")
        else:
            print(f"✓ {tenant_id}")

    if errors:
        print("\nValidation errors:", file=sys.stderr)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
        return 1

    print(f"\nAll {len(documents)} tenant settings validated successfully!")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "serve":
        serve(args.host, args.port)
        return 0
    if args.command == "validate-settings":
        return validate_settings_file(args.path)
    if args.command not in ("run-cohort", "resort"):
        parser.print_help()
        return 2

    if args.command == "run-cohort":
        operation, target = OPERATION_COHORT, args.cohort
    else:
        operation, target = OPERATION_RESORT, args.collection_id

    ctx = RunContext.from_args(
        tenant_id=args.tenant_id,
        operation=operation,
        target=target,
        as_of_ts=parse_timestamp(args.as_of_ts),
        correlation_id=args.correlation_id,
    )
    gateway, settings_store, event_publisher, lock_manager = create_adapters(correlation_id=args.correlation_id)
    runner = Runner(
        gateway=gateway,
        settings_store=settings_store,
        event_publisher=event_publisher,
        lock_manager=lock_manager,
        registry=Registry(),
    )
    result = runner.run_cohort(ctx) if operation == OPERATION_COHORT else runner.run_resort(ctx)
    print(result.to_dict())
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())

"""Rollup registry CLI — validate metadata record files.

Usage:
    python -m rollup_registry.cli validate data/sepolia/0xabc....json --pr-title "[Rollup] sepolia 0xAbC... - My L2"
    python -m rollup_registry.cli validate data/sepolia/0xabc....json --operation update --previous-dir ../registry-main
    python -m rollup_registry.cli schema data/sepolia/0xabc....json
    python -m rollup_registry.cli onchain data/sepolia/0xabc....json
    python -m rollup_registry.cli signature data/sepolia/0xabc....json --operation register
    python -m rollup_registry.cli message data/sepolia/0xabc....json --operation update

``--previous-dir`` must be a separate checkout of the accepted (main) branch,
not the working tree that holds the proposed file.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rollup_registry.config import load_environment
from rollup_registry.models.record import Operation, RollupRecord
from rollup_registry.persistence.previous import DirectoryRecordSource, RecordIdentity
from rollup_registry.service import RegistryService, ServiceResult


def _make_service(args: argparse.Namespace) -> RegistryService:
    previous_dir = getattr(args, "previous_dir", None)
    if previous_dir is not None:
        return RegistryService(previous_source=DirectoryRecordSource(previous_dir))
    if getattr(args, "no_previous", False):
        return RegistryService(use_remote_previous=False)
    return RegistryService()


def _previous_is_proposed(service: RegistryService, previous_dir: Path, path: Path) -> bool:
    """True when the history directory would serve the proposed file as its own baseline."""
    document, errors = service.load_document(path)
    if errors:
        return False
    config_address = RollupRecord.from_document(document).config_address
    network = service.resolve_network(path, document)
    if network is None or not config_address:
        return False
    identity = RecordIdentity(network=network, config_address=config_address)
    return (previous_dir / identity.storage_key).resolve() == path.resolve()


def _report(title: str, result: ServiceResult) -> int:
    if result.success:
        print(f"{title}: PASSED")
    else:
        print(f"{title}: FAILED", file=sys.stderr)
        for index, error in enumerate(result.errors, 1):
            print(f"  {index}. {error}", file=sys.stderr)
    for warning in result.warnings:
        print(f"  warning: {warning}")
    return 0 if result.success else 1


def cmd_validate(args: argparse.Namespace) -> int:
    service = _make_service(args)
    if args.previous_dir is not None and _previous_is_proposed(service, args.previous_dir, args.file):
        print(
            f"--previous-dir {args.previous_dir} contains the proposed file itself. "
            "Point it at a separate checkout of the accepted registry branch.",
            file=sys.stderr,
        )
        return 1
    operation = Operation(args.operation) if args.operation else None
    result = service.validate_file(args.file, pr_title=args.pr_title, operation=operation)
    if result.data.get("operation"):
        print(f"Operation: {result.data['operation']}  Network: {result.data.get('network')}")
    return _report("Validation", result)


def cmd_schema(args: argparse.Namespace) -> int:
    return _report("Schema validation", _make_service(args).validate_schema_file(args.file))


def cmd_onchain(args: argparse.Namespace) -> int:
    return _report("On-chain validation", _make_service(args).validate_onchain_file(args.file))


def cmd_signature(args: argparse.Namespace) -> int:
    service = _make_service(args)
    result = service.validate_signature_file(args.file, Operation(args.operation))
    return _report("Signature validation", result)


def cmd_message(args: argparse.Namespace) -> int:
    service = _make_service(args)
    result = service.signing_message(args.file, Operation(args.operation), args.timestamp)
    if not result.success:
        print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
        return 1
    print(result.data["message"])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rollup-registry",
        description="Rollup registry — metadata record validation",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")
    operations = [o.value for o in Operation]

    # validate
    p_val = sub.add_parser("validate", help="Run the full validation pipeline")
    p_val.add_argument("file", type=Path, help="Record file (data/{network}/{address}.json)")
    p_val.add_argument("--pr-title", help="Operation tag, e.g. '[Rollup] sepolia 0x... - Name'")
    p_val.add_argument("--operation", choices=operations, help="Operation when no tag is given")
    source = p_val.add_mutually_exclusive_group()
    source.add_argument(
        "--previous-dir", type=Path,
        help="Separate checkout of the accepted registry branch for history checks",
    )
    source.add_argument("--no-previous", action="store_true", help="Skip remote history lookup")

    # schema
    p_schema = sub.add_parser("schema", help="Schema validation only")
    p_schema.add_argument("file", type=Path)

    # onchain
    p_chain = sub.add_parser("onchain", help="On-chain sequencer, token and staking checks")
    p_chain.add_argument("file", type=Path)

    # signature
    p_sig = sub.add_parser("signature", help="Signature authorization only")
    p_sig.add_argument("file", type=Path)
    p_sig.add_argument("--operation", choices=operations, default="register")

    # message
    p_msg = sub.add_parser("message", help="Print the message the sequencer must sign")
    p_msg.add_argument("file", type=Path)
    p_msg.add_argument("--operation", choices=operations, default="register")
    p_msg.add_argument("--timestamp", type=int, help="Unix seconds (default: from the record)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    load_environment()

    commands = {
        "validate": cmd_validate,
        "schema": cmd_schema,
        "onchain": cmd_onchain,
        "signature": cmd_signature,
        "message": cmd_message,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())

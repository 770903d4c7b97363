#!/usr/bin/env python3
"""Sign a rollup registry record with the sequencer key.

Builds the registry message for the record (timestamped with the
record's own createdAt / lastUpdated), signs it with the sequencer's
private key, and writes metadata.signature and metadata.signedBy back
into the file.

Usage:
    python3 tools/sign_metadata.py data/sepolia/0xabc....json register
    python3 tools/sign_metadata.py data/sepolia/0xabc....json update --stamp

--stamp first sets the record's timestamps to the current time
(createdAt and lastUpdated for register, lastUpdated for update).

Requires:
    SEQUENCER_PRIVATE_KEY (or PRIVATE_KEY) in a .env file at the project root.
"""

import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import encode_hex

from rollup_registry.engine.signature import build_message
from rollup_registry.models.record import Operation, RollupRecord, unix_to_iso

ROOT = Path(__file__).resolve().parents[1]


def stamp_record(document: dict, operation: Operation, now: datetime) -> int:
    """Set the record's declared timestamps to *now*. Returns unix seconds."""
    seconds = int(now.timestamp())
    iso = unix_to_iso(seconds)
    if operation == Operation.REGISTER:
        document["createdAt"] = iso
    document["lastUpdated"] = iso
    return seconds


def sign_record(document: dict, operation: Operation, private_key: str) -> str:
    """Sign *document* in place. Returns the signer address."""
    record = RollupRecord.from_document(document)
    timestamp = record.expected_signature_timestamp(operation)
    if timestamp is None:
        raise ValueError("Record has no valid timestamp for this operation")

    message = build_message(record, operation, timestamp)
    account = Account.from_key(private_key)
    signed = account.sign_message(encode_defunct(text=message))

    metadata = document.setdefault("metadata", {})
    metadata["signature"] = encode_hex(signed.signature)
    metadata["signedBy"] = account.address
    return account.address


def main(argv: list[str]) -> int:
    if len(argv) < 2 or argv[1] not in ("register", "update"):
        print(__doc__)
        return 1

    load_dotenv(ROOT / ".env")
    private_key = os.getenv("SEQUENCER_PRIVATE_KEY") or os.getenv("PRIVATE_KEY")
    if not private_key:
        print("ERROR: Missing SEQUENCER_PRIVATE_KEY in .env", file=sys.stderr)
        return 1

    path = Path(argv[0])
    if not path.exists():
        print(f"ERROR: Record not found: {path}", file=sys.stderr)
        return 1

    operation = Operation(argv[1])
    document = json.loads(path.read_text(encoding="utf-8"))
    if "--stamp" in argv[2:]:
        stamp_record(document, operation, datetime.now(timezone.utc))

    try:
        signer = sign_record(document, operation, private_key)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")

    print(f"  Record:     {path}")
    print(f"  Operation:  {operation.value}")
    print(f"  Signed by:  {signer}")
    print()
    print("  The signature expires 24 hours after the record timestamp.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

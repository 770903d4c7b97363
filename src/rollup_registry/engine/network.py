"""Network context — operation tags, network-from-path, chain-id plausibility.

The operation tag is the review-title convention a submitter uses to
declare intent:

    [Rollup] sepolia 0x5f5a...09f6 - My L2      (register)
    [Update] mainnet 0x1234...7890 - Renamed    (update)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from rollup_registry.models.record import Operation


SUPPORTED_NETWORKS: tuple[str, ...] = ("mainnet", "sepolia")

OPERATION_TAG_PATTERN = re.compile(
    r"^\[(Rollup|Update)\]\s+(\w+)\s+(0[xX][a-fA-F0-9]{40})\s+-\s+(.+)$"
)

_TAG_OPERATIONS = {"Rollup": Operation.REGISTER, "Update": Operation.UPDATE}

OPERATION_TAG_FORMAT_ERROR = (
    "PR title must follow format: [Rollup] network 0x1234...abcd - L2 Name "
    "or [Update] network 0x1234...abcd - L2 Name"
)

# Seed lists of chain ids whose network class is known. Anything not listed
# is accepted on either network.
KNOWN_MAINNET_CHAIN_IDS: frozenset[int] = frozenset({
    1,  # Ethereum
    10, 42161, 137, 8453,  # Optimism, Arbitrum One, Polygon PoS, Base
    324, 1101, 59144,  # zkSync Era, Polygon zkEVM, Linea
})
KNOWN_TESTNET_CHAIN_IDS: frozenset[int] = frozenset({
    11155111,  # Sepolia
    420, 421613, 80001, 84531,  # Optimism Goerli, Arbitrum Goerli, Mumbai, Base Goerli
    280, 1442, 59140,  # zkSync Era testnet, Polygon zkEVM testnet, Linea Goerli
})


@dataclass(frozen=True)
class OperationTag:
    """Parsed operation tag. ``error`` is set iff ``valid`` is False."""
    valid: bool
    operation: Optional[Operation] = None
    network: Optional[str] = None
    address: Optional[str] = None
    name: Optional[str] = None
    error: str = ""


def parse_operation_tag(title: str) -> OperationTag:
    """Parse ``[Rollup|Update] {network} {address} - {name}``. Never raises."""
    match = OPERATION_TAG_PATTERN.match(title or "")
    if not match:
        return OperationTag(valid=False, error=OPERATION_TAG_FORMAT_ERROR)

    kind, network, address, name = match.groups()

    if network not in SUPPORTED_NETWORKS:
        return OperationTag(
            valid=False,
            error=f"Invalid network: {network}. Must be one of: {', '.join(SUPPORTED_NETWORKS)}",
        )

    name = name.strip()
    if not name:
        return OperationTag(valid=False, error="Rollup name cannot be empty")

    return OperationTag(
        valid=True,
        operation=_TAG_OPERATIONS[kind],
        network=network,
        address=address,
        name=name,
    )


def format_operation_tag(operation: Operation, network: str, address: str, name: str) -> str:
    """Inverse of parse_operation_tag."""
    kind = "Rollup" if operation == Operation.REGISTER else "Update"
    return f"[{kind}] {network} {address} - {name}"


def extract_network_from_path(path: str) -> Optional[str]:
    """Network directory of a record path: the segment after ``data``.

    ``data/sepolia/0xabc....json`` -> ``"sepolia"``. Returns None when the
    path has no ``data/{network}/`` component.
    """
    parts = [p for p in re.split(r"[\\/]", path or "") if p]
    for index, part in enumerate(parts[:-2]):
        if part == "data" and re.fullmatch(r"\w+", parts[index + 1]):
            return parts[index + 1]
    return None


def validate_network_chain_id(network: str, chain_id: Optional[int]) -> list[str]:
    """Reject a chain id known to belong to the other network class.

    Returns list of errors. Empty list = valid.
    """
    if chain_id is None:
        return []
    if network == "mainnet" and chain_id in KNOWN_TESTNET_CHAIN_IDS:
        return [f"ChainId {chain_id} is a testnet chainId but file is in mainnet directory"]
    if network == "sepolia" and chain_id in KNOWN_MAINNET_CHAIN_IDS:
        return [f"ChainId {chain_id} is a mainnet chainId but file is in sepolia directory"]
    return []

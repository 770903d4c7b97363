"""Address checker — hex syntax, EIP-55 checksum, and storage key rules.

A mixed-case address is a checksum claim and must match the canonical
EIP-55 casing exactly. Uniform-case addresses (all lower or all upper
hex letters) make no checksum claim and are accepted on syntax alone.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from eth_utils import to_checksum_address

from rollup_registry.models.record import RECORD_FILE_EXTENSION


_ADDRESS_PATTERN = re.compile(r"^0[xX][0-9a-fA-F]{40}$")


class AddressChecker:
    """Validates addresses declared in a rollup record."""

    def is_valid_address(self, text: Any) -> bool:
        if not isinstance(text, str) or not _ADDRESS_PATTERN.match(text):
            return False

        payload = text[2:]
        has_upper = any(c in "ABCDEF" for c in payload)
        has_lower = any(c in "abcdef" for c in payload)
        if not (has_upper and has_lower):
            return True

        return to_checksum_address("0x" + payload.lower())[2:] == payload

    def validate_filename(self, filename: str, address: str) -> bool:
        """The storage key is the lowercase address plus the record extension."""
        return filename == f"{address.lower()}{RECORD_FILE_EXTENSION}"

    def validate_contract_addresses(
        self,
        l1_contracts: Mapping[str, Any],
        l2_contracts: Mapping[str, Any],
        sequencer_address: Optional[str],
    ) -> list[str]:
        """Check every declared contract address plus the sequencer.

        Returns list of errors, one per invalid entry. Empty list = valid.
        """
        errors: list[str] = []

        for name, address in l1_contracts.items():
            if address and not self.is_valid_address(address):
                errors.append(f"Invalid L1 contract address for {name}: {address}")

        for name, address in l2_contracts.items():
            if address and not self.is_valid_address(address):
                errors.append(f"Invalid L2 contract address for {name}: {address}")

        if not self.is_valid_address(sequencer_address):
            errors.append(f"Invalid sequencer address: {sequencer_address}")

        return errors

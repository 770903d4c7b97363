"""ABI fragments and decoding for the contracts the registry reads.

Only the surface the validation pipeline needs:
- SystemConfig: ``unsafeBlockSigner()`` and ``nativeTokenAddress()`` views.
- Layer2Manager (staking registry): the ``registerCandidateAddOn`` call
  and the ``RegisteredCandidateAddOn`` event it emits.

Call data and logs are decoded through web3 contract objects built from
these fragments. No provider is needed for decoding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from web3 import Web3
from web3.exceptions import MismatchedABI


SYSTEM_CONFIG_ABI: list[dict[str, Any]] = [
    {
        "inputs": [],
        "name": "unsafeBlockSigner",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "nativeTokenAddress",
        "outputs": [{"internalType": "address", "name": "addr_", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

REGISTER_CANDIDATE_FUNCTION = "registerCandidateAddOn"
CANDIDATE_REGISTERED_EVENT = "RegisteredCandidateAddOn"

LAYER2_MANAGER_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "address", "name": "rollupConfig", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
            {"internalType": "bool", "name": "flagTon", "type": "bool"},
            {"internalType": "string", "name": "memo", "type": "string"},
        ],
        "name": REGISTER_CANDIDATE_FUNCTION,
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": False, "internalType": "address", "name": "rollupConfig", "type": "address"},
            {"indexed": False, "internalType": "uint256", "name": "wtonAmount", "type": "uint256"},
            {"indexed": False, "internalType": "string", "name": "memo", "type": "string"},
            {"indexed": False, "internalType": "address", "name": "operator", "type": "address"},
            {"indexed": False, "internalType": "address", "name": "candidateAddOn", "type": "address"},
        ],
        "name": CANDIDATE_REGISTERED_EVENT,
        "type": "event",
    },
]


@dataclass(frozen=True)
class DecodedCall:
    """A decoded contract call: function name plus named arguments."""
    name: str
    args: dict[str, Any]


_OFFLINE = Web3()


def _contract(abi: Sequence[Mapping[str, Any]]) -> Any:
    return _OFFLINE.eth.contract(abi=list(abi))


def decode_function_call(abi: Sequence[Mapping[str, Any]], data: Any) -> Optional[DecodedCall]:
    """Match call data against every function in *abi* and decode it.

    Returns None when the selector belongs to no known function.
    Raises eth_abi decoding errors on a known selector with a bad payload.
    """
    payload = bytes(data) if isinstance(data, (bytes, bytearray)) else Web3.to_bytes(hexstr=data)
    if len(payload) < 4:
        return None
    try:
        function, args = _contract(abi).decode_function_input(payload)
    except (MismatchedABI, ValueError):
        return None
    return DecodedCall(name=function.fn_name, args=dict(args))


def decode_event_log(
    abi: Sequence[Mapping[str, Any]], name: str, log: Mapping[str, Any]
) -> Optional[dict[str, Any]]:
    """Decode a receipt *log* as event *name*, or return None if topic0 differs."""
    event = getattr(_contract(abi).events, name)()
    try:
        decoded = event.process_log(log)
    except MismatchedABI:
        return None
    return dict(decoded["args"])

"""Network table and RPC endpoint resolution.

Endpoints come from the environment, loaded from a ``.env`` file at the
working directory when present:

    MAINNET_RPC_URL=https://...
    SEPOLIA_RPC_URL=https://...
    RPC_TIMEOUT_SECONDS=30
    REGISTRY_BASE_URL=https://raw.githubusercontent.com/.../main/

Without an override, the public endpoint for the network is used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_REGISTRY_BASE_URL = (
    "https://raw.githubusercontent.com/tokamak-network/"
    "tokamak-rollup-metadata-repository/refs/heads/main/"
)


@dataclass(frozen=True)
class NetworkConfig:
    """Static facts about one supported L1 network."""
    name: str
    chain_id: int
    public_rpc_url: str
    staking_registry: Optional[str] = None  # Layer2Manager proxy
    explorer_url: str = ""


NETWORKS: dict[str, NetworkConfig] = {
    "mainnet": NetworkConfig(
        name="mainnet",
        chain_id=1,
        public_rpc_url="https://ethereum-rpc.publicnode.com",
        staking_registry="0xD6Bf6B2b7553c8064Ba763AD6989829060FdFC1D",
        explorer_url="https://etherscan.io",
    ),
    "sepolia": NetworkConfig(
        name="sepolia",
        chain_id=11155111,
        public_rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        staking_registry="0x58B4C2FEf19f5CDdd944AadD8DC99cCC71bfeFDc",
        explorer_url="https://sepolia.etherscan.io",
    ),
}


@dataclass(frozen=True)
class RpcConfig:
    url: str
    is_custom: bool
    network: str
    timeout: Optional[float] = None


def get_network(name: str) -> NetworkConfig:
    config = NETWORKS.get(name)
    if config is None:
        raise ValueError(
            f"Unsupported network: {name}. Supported networks: {', '.join(NETWORKS)}"
        )
    return config


def network_for_chain_id(chain_id: Optional[int]) -> Optional[NetworkConfig]:
    for config in NETWORKS.values():
        if config.chain_id == chain_id:
            return config
    return None


def load_environment() -> None:
    """Load ``.env`` into the process environment without overriding it."""
    load_dotenv(override=False)


def _timeout_from_env() -> Optional[float]:
    raw = os.getenv("RPC_TIMEOUT_SECONDS")
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"RPC_TIMEOUT_SECONDS must be a number, got: {raw}")
    return value if value > 0 else None


def get_rpc_config(network: str) -> RpcConfig:
    """Resolve the RPC endpoint for *network*.

    ``{NETWORK}_RPC_URL`` wins over the public default.
    """
    config = get_network(network)
    custom = os.getenv(f"{network.upper()}_RPC_URL")
    if custom:
        return RpcConfig(url=custom, is_custom=True, network=network, timeout=_timeout_from_env())
    return RpcConfig(
        url=config.public_rpc_url,
        is_custom=False,
        network=network,
        timeout=_timeout_from_env(),
    )


def get_registry_base_url() -> str:
    base = os.getenv("REGISTRY_BASE_URL") or DEFAULT_REGISTRY_BASE_URL
    return base if base.endswith("/") else base + "/"

"""On-chain reads — web3 client, ABI decoding, chain-state checks."""

from rollup_registry.chain.client import ChainClient
from rollup_registry.chain.reader import ChainStateReader

__all__ = ["ChainClient", "ChainStateReader"]

"""
Chain - On-chain interaction layer for l1x-forge.

Transaction codec, JSON-RPC client, event extraction and confirmation
polling for an L1X node. Uses httpx + eth-abi.
"""

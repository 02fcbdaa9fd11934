"""
Chain - on-chain interaction layer for weathermint.

Provides the hand-laid mint calldata encoder, a JSON-RPC wallet
transport, and the sub-account session that dispatches calls.

Uses httpx + eth-abi + eth-hash instead of the heavyweight web3.py.
"""

"""
Chain - On-chain interaction layer for sendreceive.

Provides JSON-RPC client, artifact loading, and transaction utilities.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""

"""Verified Ethereum execution-layer queries over an untrusted RPC."""

__version__ = "0.1.0"
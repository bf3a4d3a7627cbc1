"""
Nootverse client - an optimistic local-cache client for the Nootverse actor.
This package mirrors the notes and universes kept by a remote, authenticated
actor into ordered in-memory caches and keeps them consistent with the
positional update/delete protocol the actor exposes.

This version uses asyncio for all remote calls.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("nootverse-client")
except PackageNotFoundError:
    __version__ = "0.3.0"

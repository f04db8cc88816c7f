"""
zkgmbridge: AtomOne <-> EVM transfers over Union ZKGM.

Builds ZKGM (UCS03) transfer payloads in both directions through the
Osmosis hub and tracks the resulting packets on the Union indexer.
"""

__version__ = "0.1.0"

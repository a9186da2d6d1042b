"""
wokhei - Query engine for decentralized lists on Nostr relays

Turns a relay's capped, unordered, possibly duplicated responses into
complete, deduplicated, deterministically ordered list queries: header
listings with pagination, item aggregation, counts and full exports.

Fun fact: Relays can only filter by exact tag values - every "search"
you see in a Nostr client is really the client doing the work!
"""

from wokhei.queries import Wokhei

__version__ = "0.1.0"
__all__ = ["Wokhei", "__version__"]

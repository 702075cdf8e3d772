"""
User search service.

Prefix search over a remote user directory with a local read-through
cache of users and avatars and a deny-list of queries known to be empty.
"""

__version__ = "1.0.0"

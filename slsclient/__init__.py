"""Client library for a log service, with a shard consumer library."""

__version__ = "0.6.0"
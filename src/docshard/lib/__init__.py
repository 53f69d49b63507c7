"""Core sharding library."""

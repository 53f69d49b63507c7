"""Data models: shards and sharding configuration."""

"""Hierarchical document sharding.

Partitions large structured text documents into an epic/story/task
hierarchy of shards with navigation links, cross-references and an index,
and reassembles them on demand.
"""

from docshard.config.loader import load_shard_config
from docshard.lib.document_sharder import (
    DocumentSharder,
    ShardingResult,
    ShardingSession,
)
from docshard.lib.errors import (
    ConfigError,
    DocShardError,
    ShardFormatError,
    ShardNotFoundError,
    ShardWriteError,
    SourceReadError,
)
from docshard.lib.reassembler import reassemble_document
from docshard.models.config import ShardConfig
from docshard.models.shard import Shard

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DocShardError",
    "DocumentSharder",
    "Shard",
    "ShardConfig",
    "ShardFormatError",
    "ShardNotFoundError",
    "ShardWriteError",
    "ShardingResult",
    "ShardingSession",
    "SourceReadError",
    "load_shard_config",
    "reassemble_document",
]

"""CLI commands for browsing a sharded document.

``docshard index`` prints the hierarchy recorded in index.json and
``docshard search`` runs a keyword query over the reloaded shards.
"""

import sys
from pathlib import Path

import click

from docshard.lib.errors import DocShardError
from docshard.lib.logging_config import get_logger, setup_logging
from docshard.lib.navigation_index import build_navigation_index
from docshard.lib.persistence import (
    index_levels,
    iter_index_entries,
    load_index,
    load_shards,
)

logger = get_logger(__name__)


@click.command(name="index")
@click.argument(
    "shard_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug output")
def index(shard_dir: Path, verbose: bool) -> None:
    """Show the shard hierarchy of a sharded document.

    SHARD_DIR is the sharded document directory holding index.json.
    """
    setup_logging(verbose=verbose)

    try:
        data = load_index(shard_dir)
    except DocShardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    levels = index_levels(data)
    click.echo(f"Document: {data.get('document', shard_dir.name)}")
    click.echo(f"Source: {data.get('original_file', 'unknown')}")
    click.echo(f"Total shards: {data.get('total_shards', 0)}")

    for level, entry in iter_index_entries(data):
        indent = "  " * levels.index(level)
        click.echo(f"{indent}- [{level}] {entry['title']} ({entry['id']})")

    edges = [ref for ref in data.get("cross_references", []) if ref.get("to")]
    if edges:
        click.echo(f"Shards with cross references: {len(edges)}")


@click.command(name="search")
@click.argument(
    "shard_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.argument("query")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug output")
def search(shard_dir: Path, query: str, verbose: bool) -> None:
    """Search a sharded document for shards containing every query keyword.

    SHARD_DIR is the sharded document directory holding index.json.

    Example:

        docshard search out/spec "authentication token"
    """
    setup_logging(verbose=verbose)

    try:
        shards = load_shards(shard_dir)
    except DocShardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    navigation = build_navigation_index(shards)
    matches = navigation.search(query)
    logger.debug(f"Query '{query}' matched {len(matches)} of {len(shards)} shards")

    if not matches:
        click.echo(f"No shards match '{query}'")
        return

    click.echo(f"{len(matches)} shard(s) match '{query}':")
    for shard_id in matches:
        shard = navigation.get(shard_id)
        if shard is None:
            continue
        click.echo(
            f"- [{shard.type}] {shard.title} ({shard.id}, {shard.line_count} lines)"
        )

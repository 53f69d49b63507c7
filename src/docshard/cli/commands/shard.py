"""CLI command for sharding a document.

Implements the 'docshard shard' command, which partitions one document into
an epic/story/task hierarchy and writes it under the output directory.
"""

import math
import sys
from pathlib import Path

import click

from docshard.config.loader import load_shard_config
from docshard.lib.document_sharder import DocumentSharder, ShardingResult
from docshard.lib.errors import ConfigError, DocShardError
from docshard.lib.logging_config import get_logger, setup_logging
from docshard.lib.structure_parser import parse_sections
from docshard.models.config import ShardConfig

logger = get_logger(__name__)

PREVIEW_SECTION_LIMIT = 10


def _print_preview(input_path: Path, config: ShardConfig) -> None:
    """Print line count, shard estimate and detected sections."""
    lines = input_path.read_text(encoding="utf-8").split("\n")
    click.echo("Preview")
    click.echo(f"  File: {input_path}")
    click.echo(f"  Total lines: {len(lines)}")
    click.echo(f"  Max shard size: {config.max_lines} lines")
    click.echo(f"  Estimated shards: ~{math.ceil(len(lines) / config.max_lines)}")

    sections = [section.title for section in parse_sections(lines)]
    if sections:
        click.echo(f"  Detected sections ({len(sections)}):")
        for section in sections[:PREVIEW_SECTION_LIMIT]:
            click.echo(f"    - {section}")
        if len(sections) > PREVIEW_SECTION_LIMIT:
            click.echo(f"    ... and {len(sections) - PREVIEW_SECTION_LIMIT} more")


def _print_result(result: ShardingResult) -> None:
    """Print the hierarchy tree, metrics and output location."""
    hierarchy = result.hierarchy
    click.echo("Shard hierarchy:")
    click.echo(f"  Epics: {len(hierarchy.epics)}")
    for epic in hierarchy.epics:
        click.echo(f"  - {epic.title} ({epic.line_count} lines)")
        for story in hierarchy.stories.get(epic.id, []):
            click.echo(f"    - {story.title} ({story.line_count} lines)")
            for task in hierarchy.tasks.get(story.id, []):
                click.echo(f"      - {task.title} ({task.line_count} lines)")

    metrics = result.metrics
    click.echo("Metrics:")
    click.echo(f"  Original size: {metrics.original_lines} lines")
    click.echo(f"  Total shards: {result.total_shards}")
    click.echo(f"  Compression ratio: {metrics.compression_ratio * 100:.1f}%")
    click.echo(f"  Average shard size: {metrics.average_shard_size} lines")
    click.echo(f"  Max shard size: {metrics.max_shard_size} lines")
    click.echo(f"  Min shard size: {metrics.min_shard_size} lines")
    click.echo(f"  Cross references: {metrics.cross_reference_count}")
    if metrics.oversized_shards:
        click.echo(
            f"  Oversized (single indivisible block): {len(metrics.oversized_shards)}"
        )
    click.echo(f"  Processing time: {metrics.processing_time_ms}ms")

    if result.output_path is not None:
        click.echo(f"Output location: {result.output_path}")


@click.command(name="shard")
@click.argument(
    "input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False),
    default=None,
    help="Destination root for sharded output",
)
@click.option(
    "--max-lines",
    type=int,
    default=None,
    help="Maximum lines per story/task shard",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML configuration file (defaults to ./.docshard.yaml if present)",
)
@click.option(
    "--preserve-context/--no-preserve-context",
    default=None,
    help="Keep code fences and lists intact when splitting",
)
@click.option(
    "--preview",
    is_flag=True,
    help="Show what would be sharded without writing anything",
)
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite existing shards for this document",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug output")
@click.option("--quiet", "-q", is_flag=True, help="Only print warnings and errors")
def shard(
    input_file: Path,
    output: str | None,
    max_lines: int | None,
    config_file: str | None,
    preserve_context: bool | None,
    preview: bool,
    force: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Shard a document into an epic/story/task hierarchy.

    INPUT_FILE is the path to the document to shard.

    Example:

        docshard shard docs/spec.md --max-lines 300

        docshard shard docs/spec.md --output build/shards --force
    """
    setup_logging(verbose=verbose, quiet=quiet)

    try:
        config = load_shard_config(
            config_file,
            overrides={
                "max_lines": max_lines,
                "output_dir": output,
                "preserve_context": preserve_context,
            },
        )
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    logger.info(
        f"Shard command invoked: input={input_file}, max_lines={config.max_lines}, "
        f"output_dir={config.output_dir}, preview={preview}"
    )

    sharder = DocumentSharder(config)

    try:
        if preview:
            _print_preview(input_file, config)
            return

        output_path = sharder.output_path_for(input_file)
        if output_path.exists():
            if not force:
                click.echo(
                    f"Error: shards already exist at {output_path}. "
                    "Use --force to overwrite.",
                    err=True,
                )
                sys.exit(1)
            logger.info(f"Replacing existing shards at {output_path}")

        result = sharder.shard_document(input_file)
    except (DocShardError, OSError, UnicodeDecodeError) as e:
        logger.debug("Sharding failed", exc_info=True)
        click.echo(f"Error: sharding failed: {e}", err=True)
        sys.exit(1)

    if not quiet:
        _print_result(result)

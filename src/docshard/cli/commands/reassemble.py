"""CLI command for reassembling a sharded document."""

import sys
from pathlib import Path

import click

from docshard.lib.errors import DocShardError
from docshard.lib.logging_config import get_logger, setup_logging
from docshard.lib.reassembler import calculate_similarity, reassemble_document

logger = get_logger(__name__)


@click.command(name="reassemble")
@click.argument(
    "shard_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: <shard_dir>-reassembled.md)",
)
@click.option(
    "--compare",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Original document to compare the reassembled text against",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug output")
@click.option("--quiet", "-q", is_flag=True, help="Only print warnings and errors")
def reassemble(
    shard_dir: Path,
    output: Path | None,
    compare: Path | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Reassemble a sharded document into a single file.

    SHARD_DIR is the sharded document directory holding index.json.

    Example:

        docshard reassemble .nexus/specs/sharded/spec

        docshard reassemble out/spec --compare docs/spec.md
    """
    setup_logging(verbose=verbose, quiet=quiet)
    shard_dir = shard_dir.resolve()
    output_path = output or shard_dir.with_name(f"{shard_dir.name}-reassembled.md")

    try:
        text = reassemble_document(shard_dir)
        output_path.write_text(text, encoding="utf-8")
    except (DocShardError, OSError) as e:
        logger.debug("Reassembly failed", exc_info=True)
        click.echo(f"Error: reassembly failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"Reassembled document written to {output_path}")

    if compare is not None:
        original = compare.read_text(encoding="utf-8")
        similarity = calculate_similarity(original, text)
        click.echo(f"Similarity to {compare}: {similarity * 100:.1f}%")
        if original == text:
            click.echo("Reassembled text is identical to the original")

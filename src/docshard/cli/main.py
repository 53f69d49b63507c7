"""Command line entry point for docshard."""

import click

from docshard import __version__
from docshard.cli.commands.index import index, search
from docshard.cli.commands.reassemble import reassemble
from docshard.cli.commands.shard import shard


@click.group()
@click.version_option(__version__, prog_name="docshard")
def main() -> None:
    """Shard large documents into an epic/story/task hierarchy."""


main.add_command(shard)
main.add_command(reassemble)
main.add_command(index)
main.add_command(search)


if __name__ == "__main__":
    main()

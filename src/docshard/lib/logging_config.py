"""Logging setup shared by the docshard command line.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves. The CLI calls ``setup_logging`` once per
command to route records to stderr at the level implied by its flags.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_ROOT_LOGGER_NAME = "docshard"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Logger instance under the docshard hierarchy.
    """
    return logging.getLogger(name)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the docshard logger hierarchy.

    Verbose wins over quiet when both are set.

    Args:
        verbose: Emit DEBUG records.
        quiet: Only emit WARNING and above.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(level)

    # Replace our own handler on repeated calls instead of stacking them
    for handler in list(root.handlers):
        if getattr(handler, "_docshard_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler._docshard_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.propagate = False

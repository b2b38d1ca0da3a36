"""
Utility Functions for Rollping.

Host list parsing and logging setup shared by the CLI and tests.
"""

import logging
import sys
from typing import List, Optional, TextIO

from exceptions import InputError

logger = logging.getLogger(__name__)

VERBOSITY_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
}


def read_hosts(stream: TextIO) -> List[str]:
    """
    Read hosts from a text stream, one per line.

    Surrounding whitespace is stripped and blank lines are skipped.
    When the stream exposes its byte buffer, lines are decoded one at
    a time and a line that is not valid UTF-8 is skipped with a warning.

    Raises:
        InputError: If the stream cannot be read.
    """
    source = getattr(stream, "buffer", stream)
    hosts = []
    try:
        for line_num, line in enumerate(source, 1):
            if isinstance(line, bytes):
                try:
                    line = line.decode("utf-8")
                except UnicodeDecodeError as e:
                    logger.warning("Line %d: skipping undecodable input (%s)", line_num, e)
                    continue
            line = line.strip()
            if line:
                hosts.append(line)
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Failed to read hosts: {e}") from e
    return hosts


def verbosity_to_level(verbose: int, override: Optional[str] = None) -> int:
    """Map a -v count to a logging level; an explicit level name wins."""
    if override:
        level = logging.getLevelName(override.upper())
        if isinstance(level, int):
            return level
    return VERBOSITY_LEVELS.get(verbose, logging.DEBUG)


def setup_logging(level: int = logging.ERROR, stream: TextIO = None) -> None:
    """Configure application logging on stderr."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(stream or sys.stderr)],
        force=True,
    )

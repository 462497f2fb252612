"""
Logging for qwellsuite solvers.

Every module logs through a child of the ``qwellsuite`` logger, so one
call to :func:`set_level` controls the whole package.  Two levels below
DEBUG carry root-finder detail, and :func:`quieted` mutes the per-state
chatter of inner searches such as the donor variational loop.

>>> from qwellsuite.libqwellsuite.logger import get_logger, log_energies
>>> log = get_logger(__name__)
>>> log_energies(log, energies)             # "State 1: E = 24.9 meV" ...
>>> log.debug2("Newton step %d", 4)
"""

import contextlib
import logging
import sys

from .constants import meV

ROOT = "qwellsuite"

# Levels below DEBUG=10
DEBUG2 = 9  # root-finder iterations
DEBUG3 = 8  # every residual evaluation

logging.addLevelName(DEBUG2, "DEBUG2")
logging.addLevelName(DEBUG3, "DEBUG3")

VERBOSITY_LEVEL_MAP = {
    0: logging.ERROR,
    1: logging.WARNING,  # shortfalls and cut-offs
    2: logging.INFO,  # one line per state found
    3: logging.DEBUG,
    4: logging.DEBUG,
    5: DEBUG2,
    6: DEBUG3,
}

_FORMAT = "%(levelname)-7s: %(message)s"
_FORMAT_NAMED = "%(levelname)-7s: [%(name)s] %(message)s"


class SolverLogger(logging.Logger):
    """Logger with ``debug2`` and ``debug3`` methods for root-finder detail."""

    def debug2(self, msg, *args, **kwargs):
        if self.isEnabledFor(DEBUG2):
            self._log(DEBUG2, msg, args, **kwargs)

    def debug3(self, msg, *args, **kwargs):
        if self.isEnabledFor(DEBUG3):
            self._log(DEBUG3, msg, args, **kwargs)


logging.setLoggerClass(SolverLogger)


def get_logger(name: str | None = None) -> SolverLogger:
    """
    Return a logger in the ``qwellsuite`` hierarchy.

    Names outside the package (a script's ``__main__``, say) are nested
    under ``qwellsuite`` so they follow :func:`set_level` too.
    """
    if not name or name == ROOT:
        return logging.getLogger(ROOT)
    if not name.startswith(ROOT + "."):
        name = f"{ROOT}.{name}"
    return logging.getLogger(name)


def _resolve(level: int | str) -> int | str:
    if isinstance(level, int) and level in VERBOSITY_LEVEL_MAP:
        return VERBOSITY_LEVEL_MAP[level]
    if isinstance(level, str):
        return level.upper()
    return level


def set_level(level: int | str = logging.INFO) -> None:
    """
    Set the threshold for every qwellsuite logger.

    Accepts verbosity integers 0-6, Python level numbers, or level names
    in either case (``"debug2"`` works).
    """
    logging.getLogger(ROOT).setLevel(_resolve(level))


def setup(level: int | str = logging.INFO, stream=None, show_names: bool = False) -> None:
    """
    Attach a single stream handler to the ``qwellsuite`` logger.

    Later calls only change the level.  With *show_names* each line is
    tagged with the emitting module.
    """
    root = logging.getLogger(ROOT)
    if not root.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT_NAMED if show_names else _FORMAT))
        root.addHandler(handler)
    set_level(level)


@contextlib.contextmanager
def quieted(name: str | None = None, level: int | str = logging.WARNING):
    """
    Raise a logger's threshold for the duration of a block.

    The previous level is restored on exit, also when the block raises.
    A threshold already above *level* is left alone.
    """
    target = get_logger(name)
    previous = target.level
    new_level = _resolve(level)
    if isinstance(new_level, str):
        new_level = logging.getLevelName(new_level)
    if target.getEffectiveLevel() < new_level:
        target.setLevel(new_level)
    try:
        yield target
    finally:
        target.setLevel(previous)


def log_energies(log: logging.Logger, energies, level: int = logging.INFO,
                 label: str = "State") -> None:
    """Log one ``<label> i: E = ... meV`` line per energy [J], counting from 1."""
    if not log.isEnabledFor(level):
        return
    for ist, E in enumerate(energies, start=1):
        log.log(level, "%s %d: E = %.6g meV", label, ist, E / meV)

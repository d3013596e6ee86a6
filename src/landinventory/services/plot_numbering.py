"""
Plot numbering.

Derives the next sequential plot number for a block: ``<prefix><NNN>``.
"""
import re
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from config.settings import settings
from src.landinventory.db.repository import PlotRepository
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)

MIN_DIGITS = 3


def format_plot_number(prefix: str, number: int) -> str:
    """Format ``number`` with leading zeros (at least three digits, never truncated)."""
    return f"{prefix}{number:0{MIN_DIGITS}d}"


def highest_sequence(plot_numbers: Iterable[str], prefix: str) -> int:
    """
    Largest numeric suffix among plot numbers of the form ``<prefix><digits>``.

    Matching ignores case because plot numbers are unique per block ignoring
    case. Numbers that do not match contribute nothing.

    Args:
        plot_numbers: Existing plot numbers
        prefix: Plot number prefix

    Returns:
        Highest suffix, or 0 when nothing matches
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$", re.IGNORECASE)
    highest = 0
    for plot_number in plot_numbers:
        match = pattern.match(plot_number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


class PlotNumberAllocator:
    """Reads a block's plot numbers and proposes the next one."""

    def __init__(self, plots: Optional[PlotRepository] = None):
        self.plots = plots or PlotRepository()

    def next_plot_number(self, session: Session, block_id: str, prefix: Optional[str] = None) -> str:
        """
        Next unused plot number for a block.

        Pure read: calling it twice without an insert in between returns the
        same value. Run it in the same transaction as the insert that uses it.

        Args:
            session: Database session
            block_id: Block ID
            prefix: Plot number prefix (defaults to settings.default_plot_prefix)

        Returns:
            Plot number such as "P001"
        """
        if prefix is None:
            prefix = settings.default_plot_prefix

        existing = self.plots.get_plot_numbers(session, block_id)
        next_number = format_plot_number(prefix, highest_sequence(existing, prefix) + 1)

        logger.debug(
            "plot_number_allocated",
            block_id=block_id,
            prefix=prefix,
            existing=len(existing),
            plot_number=next_number
        )
        return next_number

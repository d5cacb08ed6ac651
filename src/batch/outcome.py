"""Outcome signals shared by batch operations."""

from __future__ import annotations

from enum import StrEnum


class Outcome(StrEnum):
    """How a batch operation ended.

    ``NOTHING_TO_DO`` is a normal result, not an error: no item was eligible,
    no external call was made, and the table is unchanged.
    """

    NOTHING_TO_DO = "nothing_to_do"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

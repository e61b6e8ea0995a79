"""
Session Sampler - picks the questions for a practice set, lesson quiz or exam.

Order is shuffled so learners do not memorise a fixed sequence; it is not
meant to be reproducible unless a seeded ``random.Random`` is passed.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional

try:
    from ..errors import EmptySelection
    from ..models.content import Question
except ImportError:
    from src.errors import EmptySelection
    from src.models.content import Question


logger = logging.getLogger(__name__)


def sample_questions(
    pool: Iterable[Question],
    size: int,
    rng: Optional[random.Random] = None,
) -> List[Question]:
    """
    Select ``min(size, len(pool))`` distinct questions in random order.

    Args:
        pool: Candidate questions, already filtered by the caller
        size: Requested session size
        rng: Random source (default: module-level ``random``)

    Returns:
        Shuffled list of questions without repeated ids

    Raises:
        EmptySelection: If the pool is empty
        ValueError: If size is not positive
    """
    if size <= 0:
        raise ValueError(f"Session size must be > 0, got {size}")

    unique = list({q.id: q for q in pool}.values())
    if not unique:
        raise EmptySelection()

    rng = rng or random
    selected = rng.sample(unique, min(size, len(unique)))
    logger.debug("Sampled %d of %d questions (requested %d)", len(selected), len(unique), size)
    return selected

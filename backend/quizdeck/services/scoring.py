from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal


def is_exact_match(selected_option_ids: Iterable[int], correct_option_ids: Iterable[int]) -> bool:
    """Exact-match scoring: the selection must equal the correct set.

    No partial credit. A question with no correct options can never be
    answered correctly, not even with an empty selection.
    """
    correct = set(correct_option_ids)
    if not correct:
        return False
    return set(selected_option_ids) == correct


def exam_score(correct_count: int, total_questions: int) -> float:
    # 100 * correct / total, rounded half-up to 2 decimal places.
    if total_questions <= 0:
        return 0.0
    raw = Decimal(100) * Decimal(correct_count) / Decimal(total_questions)
    return float(raw.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

FREE_MISTAKES = 3
PENALTY_MS = 30000


def final_ms(elapsed_ms: int, mistakes: int, hints: int) -> int:
    """Compute the ranking time for a finished run.

    The first three mistakes are free; every mistake beyond that and every
    hint used adds a flat 30 second penalty.
    """
    return elapsed_ms + PENALTY_MS * max(0, mistakes - FREE_MISTAKES) + PENALTY_MS * hints

"""Answer evaluation for true/false questions."""


def evaluate(submitted: bool, correct: bool) -> bool:
    """Return whether the submitted answer matches the correct one."""
    return bool(submitted) == bool(correct)

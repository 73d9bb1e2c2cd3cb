"""
Output comparison.

The policy is deliberately strict: after line endings are unified and
leading/trailing whitespace is stripped, outputs must match character for
character. There is no numeric tolerance and no collapsing of inner
whitespace, so ``"1 2"`` and ``"1  2"`` are different answers.
"""


def normalize_output(text: str) -> str:
    """Unify line endings to ``\\n`` and strip surrounding whitespace."""
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def compare_outputs(expected: str, actual: str) -> bool:
    """Return True when ``actual`` is exactly ``expected`` after normalization."""
    return normalize_output(expected) == normalize_output(actual)

"""Verdict normalisation -- maps the service's textual judgments to scores.

The LinkShield service answers with free-text verdicts, while the dynamic
analysis service can also answer with the list of detections it found.
:func:`map_result_to_number` folds both into a single numeric scale:

=====================================================  ======
Verdict                                                Score
=====================================================  ======
any list (detections)                                  1
``"Likely safe"``, ``"Safe"``                          0
``"The system didn't detect anything malicious."``     0.5
``"Might be malicious"``                               1
anything else, ``""`` or ``None``                      -1
=====================================================  ======
"""

from __future__ import annotations

from typing import Any, Optional

SCORE_SAFE = 0
SCORE_NOTHING_DETECTED = 0.5
SCORE_MALICIOUS = 1
SCORE_UNKNOWN = -1

_VERDICT_SCORES: dict[str, float] = {
    "Likely safe": SCORE_SAFE,
    "Safe": SCORE_SAFE,
    "The system didn't detect anything malicious.": SCORE_NOTHING_DETECTED,
    "Might be malicious": SCORE_MALICIOUS,
}


def map_result_to_number(result: Any) -> float:
    """Map a verdict string or list of detections to a numeric score.

    Args:
        result: The ``result`` field of a service response.  Lists and
            tuples are treated as detections regardless of their content,
            so even an empty list scores as malicious.

    Returns:
        ``0`` (safe), ``0.5`` (nothing detected), ``1`` (malicious) or
        ``-1`` for unknown, empty or missing verdicts.

    Example::

        >>> map_result_to_number("Likely safe")
        0
        >>> map_result_to_number(["phishing form"])
        1
    """
    if isinstance(result, (list, tuple)):
        return SCORE_MALICIOUS
    if not isinstance(result, str):
        return SCORE_UNKNOWN
    return _VERDICT_SCORES.get(result, SCORE_UNKNOWN)


def verdict_label(score: Optional[float]) -> str:
    """Return a short human-readable label for a score, used by the CLI."""
    if score == SCORE_SAFE:
        return "safe"
    if score == SCORE_NOTHING_DETECTED:
        return "nothing detected"
    if score == SCORE_MALICIOUS:
        return "malicious"
    return "unknown"

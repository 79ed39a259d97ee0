"""Task identifier parsing and nearest-name suggestions."""

from __future__ import annotations

from collections.abc import Iterable

from refinery.dispatch.models import DEFAULT_METHOD, TaskIdentifier

HELP_KEYWORD = "help"
MODULE_SEPARATOR = "::"
METHOD_SEPARATOR = ":"
MAX_SUGGESTION_DISTANCE = 5


def parse_task_identifier(raw: str) -> TaskIdentifier | None:
    """Parse ``[module::]task[:method]``.

    Module and task names are lowercased; the method is kept as given, since
    it is matched against the task class as written. Returns None when the
    input asks for help (empty or the ``help`` keyword).
    """

    value = raw.strip()
    if not value or value.lower() == HELP_KEYWORD:
        return None

    module: str | None = None
    rest = value
    if MODULE_SEPARATOR in value:
        module, rest = value.split(MODULE_SEPARATOR, 1)
        module = module.lower() or None

    task, separator, method = rest.partition(METHOD_SEPARATOR)
    return TaskIdentifier(
        module=module,
        task=task.lower(),
        method=method if separator and method else DEFAULT_METHOD,
    )


def levenshtein(left: str, right: str) -> int:
    """Edit distance with unit insert, delete and substitute costs."""

    if len(left) < len(right):
        left, right = right, left
    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (left_char != right_char),
                ),
            )
        previous = current
    return previous[-1]


def suggest_name(
    requested: str,
    candidates: Iterable[str],
    *,
    max_distance: int = MAX_SUGGESTION_DISTANCE,
) -> str | None:
    """Closest candidate by edit distance, or None if nothing is close enough.

    Ties keep the first candidate in iteration order.
    """

    best_name: str | None = None
    best_distance: int | None = None
    for candidate in candidates:
        distance = levenshtein(candidate, requested)
        if best_distance is None or distance < best_distance:
            best_name = candidate
            best_distance = distance
    if best_distance is None or best_distance > max_distance:
        return None
    return best_name

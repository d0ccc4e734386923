"""
Pattern Compiler Utility

Compiles the ordered heuristic pattern lists used by the extractors and runs
them through a single priority-ordered dispatcher.

PATTERN RECOGNITION: Every extractor in the engine has the same shape: an
ordered list of regexes, a rule that turns a capture into a value, and a
predicate that decides whether the value is plausible.  The loop lives here;
the extractors only supply the three pieces.

SECURITY STORY: Pattern lists can be replaced from a rules file at startup.
Every pattern is checked for the common catastrophic-backtracking forms before
it is compiled, so an unsafe override is rejected when the process starts
rather than discovered while scanning a hostile email body.
"""

import re
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Tuple, TypeVar

T = TypeVar("T")

# Known ReDoS signatures: nested or repeated quantifiers on unbounded character
# classes are the most common source of catastrophic backtracking.
_REDOS_SIGNATURES: List[str] = [
    r"(\w+)*",
    r"(\d+)+",
    r"(\s+)*",
    r"(a+)+",
    r"([a-zA-Z]+)*",
    r"([0-9,]+)+",
]


def check_redos_safety(patterns: Iterable[str]) -> None:
    """
    Raise ValueError if any pattern contains a known ReDoS signature.

    This is a lightweight static check, not a full ReDoS prover.  Detection
    uses substring matching against a fixed signature list.

    Args:
        patterns: Regex pattern strings to inspect.

    Raises:
        ValueError: If any pattern contains a known ReDoS signature.
    """
    for pattern in patterns:
        for unsafe in _REDOS_SIGNATURES:
            if unsafe in pattern:
                raise ValueError(f"Potential ReDoS in pattern: {pattern!r}")


def compile_ordered_patterns(
    patterns: Sequence[str],
    flags: int = re.I,
    validate_redos: bool = True,
) -> Tuple[Pattern, ...]:
    """
    Compile pattern strings into a tuple that preserves their priority order.

    Unlike a combined ``a|b|c`` alternation, each pattern stays separate so the
    caller can exhaust every match of a higher-priority pattern before a
    lower-priority one is consulted.

    Args:
        patterns: Pattern strings, highest priority first.  Each must define at
                  least one capture group; group 1 carries the extracted value.
        flags: Regex compilation flags (default: ``re.I``).
        validate_redos: If ``True``, run ``check_redos_safety`` first.

    Returns:
        Tuple of compiled patterns in the same order.

    Raises:
        ValueError: If a pattern is unsafe, invalid, or has no capture group.
    """
    if validate_redos:
        check_redos_safety(patterns)

    compiled = []
    for p in patterns:
        try:
            regex = re.compile(p, flags)
        except re.error as e:
            raise ValueError(f"Invalid pattern {p!r}: {e}") from e
        if regex.groups < 1:
            raise ValueError(f"Pattern {p!r} has no capture group")
        compiled.append(regex)
    return tuple(compiled)


def first_accepted(
    patterns: Sequence[Pattern],
    text: str,
    convert: Callable[[str], Optional[T]],
    accept: Callable[[T], bool],
) -> Optional[Tuple[int, T]]:
    """
    Return the first accepted value found by an ordered list of patterns.

    Patterns are tried strictly in order.  All matches of one pattern are
    scanned, in order of appearance, before the next pattern is tried.  For
    each match, ``convert`` turns capture group 1 into a candidate (``None``
    means "unusable") and ``accept`` decides whether to stop.  A pattern whose
    matches are all rejected falls through to the next one.

    Args:
        patterns: Compiled patterns, highest priority first.
        text: Text to scan.
        convert: Capture-to-candidate rule.
        accept: Acceptance predicate for converted candidates.

    Returns:
        ``(pattern_index, value)`` for the first accepted candidate, or
        ``None`` when no pattern produces one.
    """
    for index, pattern in enumerate(patterns):
        for match in pattern.finditer(text):
            raw = match.group(1)
            if raw is None:
                continue
            candidate = convert(raw)
            if candidate is not None and accept(candidate):
                return index, candidate
    return None

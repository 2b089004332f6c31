"""Validate decoded model output against the fortune contract.

Validation is a total function: every input yields either a ``Candidate``
or an ``Invalid`` with a reason. Nothing here raises on bad model output.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Literal

from fortunecookie.models.fortune import MAX_WORDS, Candidate, count_words
from fortunecookie.validation.cleaner import clean

InvalidKind = Literal["malformed_json", "schema", "word_count"]


@dataclass(frozen=True)
class Invalid:
    """A rejected model response.

    Attributes:
        reason: Human-readable description of the first failed check.
        kind: Category of failure, for logs and metrics.
    """

    reason: str
    kind: InvalidKind = "schema"


def _is_number(value: Any) -> bool:
    # bool is an int subclass but not a JSON number
    return isinstance(value, int | float) and not isinstance(value, bool)


def _wrong_type(field_name: str) -> Invalid:
    return Invalid(f"missing or wrong-type field: {field_name}", kind="schema")


def validate(decoded: Any) -> Candidate | Invalid:
    """Check a JSON-decoded value, short-circuiting on the first failure.

    Order: object, ``reasoning`` string, ``score`` number, ``finalMessage``
    string, ``finalMessage`` word count below MAX_WORDS.

    Args:
        decoded: Value produced by ``json.loads``.

    Returns:
        The accepted Candidate, or Invalid describing the failure.
    """
    if not isinstance(decoded, dict):
        return Invalid(f"not an object: {type(decoded).__name__}", kind="schema")

    reasoning = decoded.get("reasoning")
    if not isinstance(reasoning, str):
        return _wrong_type("reasoning")

    score = decoded.get("score")
    if not _is_number(score):
        return _wrong_type("score")

    try:
        number = float(score)
    except OverflowError:
        return _wrong_type("score")
    # json.loads accepts arbitrarily large integers and NaN/Infinity literals
    if not math.isfinite(number):
        return _wrong_type("score")

    final_message = decoded.get("finalMessage")
    if not isinstance(final_message, str):
        return _wrong_type("finalMessage")

    words = count_words(final_message)
    if words >= MAX_WORDS:
        return Invalid(f"word count exceeded: {words} >= {MAX_WORDS}", kind="word_count")

    return Candidate(reasoning=reasoning, score=number, final_message=final_message)


def decode_candidate(raw: str) -> Candidate | Invalid:
    """Clean, decode and validate a raw completion.

    Args:
        raw: Raw text returned by a provider.

    Returns:
        The accepted Candidate, or Invalid (``kind="malformed_json"`` when
        the text is not JSON).
    """
    text = clean(raw)
    try:
        decoded = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return Invalid("malformed json", kind="malformed_json")
    return validate(decoded)

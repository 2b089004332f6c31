"""Tests for candidate decoding and validation."""

from __future__ import annotations

import json

import pytest

from fortunecookie.models.fortune import Candidate
from fortunecookie.validation import Invalid, decode_candidate, validate


def _payload(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "reasoning": "Candidate 2 scored highest on freshness.",
        "score": 4.5,
        "finalMessage": "Your socks have been plotting a reunion for years.",
    }
    data.update(overrides)
    return data


# --- validate ---


def test_valid_payload_is_accepted() -> None:
    result = validate(_payload())
    assert isinstance(result, Candidate)
    assert result.final_message == "Your socks have been plotting a reunion for years."
    assert result.score == 4.5
    assert result.reasoning.startswith("Candidate 2")


def test_integer_score_is_accepted() -> None:
    result = validate(_payload(score=5))
    assert isinstance(result, Candidate)
    assert result.score == 5.0


def test_extra_fields_are_ignored() -> None:
    result = validate(_payload(candidates=["a", "b"]))
    assert isinstance(result, Candidate)


@pytest.mark.parametrize("decoded", [[1, 2], "text", 3, None])
def test_non_object_is_rejected(decoded: object) -> None:
    result = validate(decoded)
    assert isinstance(result, Invalid)
    assert result.kind == "schema"
    assert result.reason.startswith("not an object")


@pytest.mark.parametrize(
    ("field_name", "value"),
    [
        ("reasoning", 3),
        ("reasoning", None),
        ("score", "4.5"),
        ("score", True),
        ("score", None),
        ("finalMessage", ["a"]),
        ("finalMessage", None),
    ],
)
def test_wrong_type_field_is_rejected(field_name: str, value: object) -> None:
    result = validate(_payload(**{field_name: value}))
    assert isinstance(result, Invalid)
    assert result.kind == "schema"
    assert result.reason == f"missing or wrong-type field: {field_name}"


@pytest.mark.parametrize("field_name", ["reasoning", "score", "finalMessage"])
def test_missing_field_is_rejected(field_name: str) -> None:
    data = _payload()
    del data[field_name]
    result = validate(data)
    assert isinstance(result, Invalid)
    assert field_name in result.reason


@pytest.mark.parametrize("score", [10**400, -(10**400), float("inf"), float("nan")])
def test_unrepresentable_score_is_rejected(score: object) -> None:
    """Scores that do not fit a finite float are schema violations, not crashes."""
    result = validate(_payload(score=score))
    assert isinstance(result, Invalid)
    assert result.kind == "schema"
    assert result.reason == "missing or wrong-type field: score"


def test_decode_rejects_huge_integer_and_infinity_literals() -> None:
    huge = '{"reasoning": "r", "score": 1' + "0" * 400 + ', "finalMessage": "hi"}'
    for raw in (huge, '{"reasoning": "r", "score": Infinity, "finalMessage": "hi"}'):
        result = decode_candidate(raw)
        assert isinstance(result, Invalid)
        assert result.kind == "schema"


def test_checks_short_circuit_in_order() -> None:
    """The first failing check is reported, even when later ones fail too."""
    result = validate({"score": "bad", "finalMessage": 1})
    assert isinstance(result, Invalid)
    assert result.reason == "missing or wrong-type field: reasoning"


def test_fourteen_words_is_accepted() -> None:
    message = " ".join(["word"] * 14)
    assert isinstance(validate(_payload(finalMessage=message)), Candidate)


def test_fifteen_words_is_rejected() -> None:
    message = " ".join(["word"] * 15)
    result = validate(_payload(finalMessage=message))
    assert isinstance(result, Invalid)
    assert result.kind == "word_count"
    assert result.reason == "word count exceeded: 15 >= 15"


def test_word_count_ignores_extra_whitespace() -> None:
    """Runs of whitespace count as one separator."""
    message = "  one\ttwo\n\nthree   four  "
    result = validate(_payload(finalMessage=message))
    assert isinstance(result, Candidate)
    assert result.word_count == 4


def test_empty_final_message_is_accepted() -> None:
    result = validate(_payload(finalMessage=""))
    assert isinstance(result, Candidate)
    assert result.word_count == 0


# --- decode_candidate ---


def test_decode_fenced_response() -> None:
    raw = "```json\n" + json.dumps(_payload()) + "\n```"
    result = decode_candidate(raw)
    assert isinstance(result, Candidate)


@pytest.mark.parametrize("raw", ["", "not json", '{"reasoning": ', "```json\n{oops}\n```"])
def test_malformed_json(raw: str) -> None:
    result = decode_candidate(raw)
    assert isinstance(result, Invalid)
    assert result.kind == "malformed_json"
    assert result.reason == "malformed json"


def test_decode_rejects_long_message() -> None:
    raw = json.dumps(_payload(finalMessage=" ".join(["w"] * 20)))
    result = decode_candidate(raw)
    assert isinstance(result, Invalid)
    assert result.kind == "word_count"

"""Tests for models and status labels."""

from __future__ import annotations

import pytest

from mural.models.suggestion import STATUS_LABELS, Suggestion, status_key, status_label


@pytest.mark.parametrize(
    ("key", "label"),
    [
        ("received", "Recebido"),
        ("in-analysis", "Em análise"),
        ("approved", "Aprovada"),
        ("rejected", "Rejeitada"),
        ("implemented", "Implementada"),
    ],
)
def test_status_label_mapping(key: str, label: str) -> None:
    assert status_label(key) == label
    assert status_key(label) == key
    assert status_key(key) == key


@pytest.mark.parametrize("key", [None, "", "archived", "Recebido"])
def test_unknown_status_reads_as_received(key) -> None:
    assert status_label(key) == "Recebido"


def test_status_key_case_insensitive() -> None:
    assert status_key("em análise") == "in-analysis"
    assert status_key("  IMPLEMENTADA ") == "implemented"


@pytest.mark.parametrize("value", [None, "", "all", "Concluído", "done"])
def test_status_key_unknown(value) -> None:
    assert status_key(value) is None


def test_labels_are_distinct() -> None:
    assert len(set(STATUS_LABELS.values())) == len(STATUS_LABELS)


def test_suggestion_response_detail() -> None:
    s = Suggestion(
        title="T", description="d" * 200, module="SAC", email="a@example.com", status="rejected"
    )
    summary = s.to_response()
    full = s.to_response(detail="full")

    assert summary["status"] == "Rejeitada"
    assert "description" not in summary
    assert full["description"] == "d" * 200
    assert full["is_public"] is True

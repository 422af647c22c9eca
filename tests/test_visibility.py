"""Tests for the visibility policy."""

from __future__ import annotations

import pytest

from mural.core.visibility import VisibilityPolicy, email_domain


@pytest.mark.parametrize(
    ("email", "domain"),
    [
        ("ana@example.com", "example.com"),
        ("Ana@MKSolution.COM", "mksolution.com"),
        ("  bob@sub.example.org ", "sub.example.org"),
        ("no-at-sign", ""),
    ],
)
def test_email_domain(email: str, domain: str) -> None:
    assert email_domain(email) == domain


def test_internal_domain_forced_private() -> None:
    policy = VisibilityPolicy()
    assert policy.compute("dev@mksolution.com", True) is False
    assert policy.compute("dev@mksolution.com") is False
    assert policy.compute("DEV@MKSOLUTION.COM", True) is False


def test_external_domain_honors_request() -> None:
    policy = VisibilityPolicy()
    assert policy.compute("cliente@example.com") is True
    assert policy.compute("cliente@example.com", True) is True
    assert policy.compute("cliente@example.com", False) is False


def test_lookalike_domain_is_not_internal() -> None:
    policy = VisibilityPolicy()
    assert policy.compute("x@notmksolution.com") is True
    assert policy.compute("x@mksolution.com.br") is True


def test_custom_reserved_domains() -> None:
    policy = VisibilityPolicy(["@corp.example", "Interno.io"])
    assert policy.reserved_domains == frozenset({"corp.example", "interno.io"})
    assert policy.compute("a@interno.io", True) is False
    assert policy.compute("a@mksolution.com", True) is True


def test_pluggable_predicate() -> None:
    policy = VisibilityPolicy(is_internal=lambda email: email.startswith("staff+"))
    assert policy.is_internal("staff+ana@example.com") is True
    assert policy.compute("staff+ana@example.com", True) is False
    assert policy.compute("dev@mksolution.com", True) is True

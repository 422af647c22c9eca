"""Visibility policy for new suggestions.

Submissions from the reserved internal domains never reach the public board.
The rule is applied once, when a suggestion is submitted.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

InternalPredicate = Callable[[str], bool]

DEFAULT_RESERVED_DOMAINS = ("mksolution.com",)


def email_domain(email: str) -> str:
    """Lower-cased domain part of an email address, or an empty string."""
    _, sep, domain = email.strip().rpartition("@")
    return domain.lower() if sep else ""


class VisibilityPolicy:
    """Decides whether a new suggestion is public."""

    def __init__(
        self,
        reserved_domains: Iterable[str] = DEFAULT_RESERVED_DOMAINS,
        *,
        is_internal: InternalPredicate | None = None,
    ) -> None:
        self.reserved_domains = frozenset(d.lower().lstrip("@") for d in reserved_domains)
        self._is_internal = is_internal or self._in_reserved_domain

    def _in_reserved_domain(self, email: str) -> bool:
        return email_domain(email) in self.reserved_domains

    def is_internal(self, email: str) -> bool:
        return self._is_internal(email)

    def compute(self, email: str, requested: bool | None = None) -> bool:
        """Return the effective visibility for a submission."""
        if self.is_internal(email):
            return False
        return True if requested is None else requested

"""Tests for the Suggestion Store."""

from __future__ import annotations

import pytest

from mural.core.suggestions import SuggestionStore, is_well_formed_email, next_timestamp
from mural.core.visibility import VisibilityPolicy
from mural.errors import NotFound, ValidationError
from mural.events.bus import EventBus
from mural.events.types import EventType
from mural.models.suggestion import VALID_STATUSES


@pytest.fixture
def suggestions(store, bus) -> SuggestionStore:
    return SuggestionStore(store, bus)


def _fields(description: str, **overrides) -> dict:
    fields = {
        "title": "Mapa offline",
        "description": description,
        "module": "Mapa",
        "email": "tecnico@example.com",
    }
    fields.update(overrides)
    return fields


async def test_submit_defaults(suggestions: SuggestionStore, description: str):
    s = await suggestions.submit(**_fields(description))

    assert s.status == "received"
    assert s.votes == 0
    assert s.comments_count == 0
    assert s.is_pinned is False
    assert s.is_public is True
    assert s.admin_response is None
    assert s.created_at == s.updated_at == s.status_changed_at


async def test_submit_persists(suggestions: SuggestionStore, description: str):
    s = await suggestions.submit(**_fields(description, youtube_url="https://youtu.be/x"))
    fetched = await suggestions.get(s.id)
    assert fetched == s
    assert fetched.youtube_url == "https://youtu.be/x"


async def test_description_boundary(suggestions: SuggestionStore):
    with pytest.raises(ValidationError) as exc:
        await suggestions.submit(**_fields("a" * 199))
    assert exc.value.field == "description"

    s = await suggestions.submit(**_fields("a" * 200))
    assert len(s.description) == 200


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"title": ""}, "title"),
        ({"title": "   "}, "title"),
        ({"module": "Estoque"}, "module"),
        ({"module": "bot"}, "module"),
        ({"email": "not-an-email"}, "email"),
        ({"email": "a@b"}, "email"),
        ({"email": ""}, "email"),
    ],
)
async def test_submit_names_failing_field(
    suggestions: SuggestionStore, description: str, overrides: dict, field: str
):
    with pytest.raises(ValidationError) as exc:
        await suggestions.submit(**_fields(description, **overrides))
    assert exc.value.field == field


async def test_submit_reports_first_failure(suggestions: SuggestionStore):
    with pytest.raises(ValidationError) as exc:
        await suggestions.submit(title="", description="curta", module="?", email="?")
    assert exc.value.field == "description"


async def test_internal_email_always_private(suggestions: SuggestionStore, description: str):
    s = await suggestions.submit(**_fields(description, email="dev@mksolution.com", is_public=True))
    assert s.is_public is False


async def test_external_email_may_opt_out(suggestions: SuggestionStore, description: str):
    s = await suggestions.submit(**_fields(description, is_public=False))
    assert s.is_public is False


async def test_custom_policy(store, bus, description: str):
    engine = SuggestionStore(store, bus, policy=VisibilityPolicy(["example.com"]))
    s = await engine.submit(**_fields(description))
    assert s.is_public is False


async def test_custom_min_description_length(store, bus):
    engine = SuggestionStore(store, bus, min_description_length=10)
    s = await engine.submit(**_fields("0123456789"))
    assert s.description == "0123456789"


async def test_submit_emits_event(store, description: str):
    bus = EventBus()
    events = []

    async def handler(event_type, data):
        events.append({"type": event_type, "data": data})

    bus.on(EventType.SUGGESTION_SUBMITTED, handler)
    s = await SuggestionStore(store, bus).submit(**_fields(description))

    assert len(events) == 1
    assert events[0]["data"]["suggestion_id"] == s.id
    assert events[0]["data"]["is_public"] is True


async def test_get_missing_raises(suggestions: SuggestionStore):
    with pytest.raises(NotFound):
        await suggestions.get("nonexistent-id")


@pytest.mark.parametrize("start", VALID_STATUSES)
async def test_any_status_transition_allowed(
    suggestions: SuggestionStore, description: str, start: str
):
    s = await suggestions.submit(**_fields(description))
    s = await suggestions.set_status(s.id, start)

    for target in VALID_STATUSES:
        if target == start:
            continue
        before = s.updated_at
        s = await suggestions.set_status(s.id, target)
        assert s.status == target
        assert s.updated_at > before
        s = await suggestions.set_status(s.id, start)


async def test_set_status_accepts_label(suggestions: SuggestionStore, description: str):
    s = await suggestions.submit(**_fields(description))
    updated = await suggestions.set_status(s.id, "Em análise")
    assert updated.status == "in-analysis"
    assert updated.status_label == "Em análise"


async def test_set_status_with_admin_response(suggestions: SuggestionStore, description: str):
    s = await suggestions.submit(**_fields(description))
    updated = await suggestions.set_status(s.id, "approved", "Entra na próxima sprint")
    assert updated.admin_response == "Entra na próxima sprint"

    # Omitted response keeps the previous one
    updated = await suggestions.set_status(s.id, "implemented")
    assert updated.admin_response == "Entra na próxima sprint"


async def test_set_status_unknown(suggestions: SuggestionStore, description: str):
    s = await suggestions.submit(**_fields(description))
    with pytest.raises(ValidationError) as exc:
        await suggestions.set_status(s.id, "shipped")
    assert exc.value.field == "status"
    assert (await suggestions.get(s.id)).status == "received"


async def test_set_status_missing(suggestions: SuggestionStore):
    with pytest.raises(NotFound):
        await suggestions.set_status("nonexistent-id", "approved")


async def test_set_status_emits_event(store, description: str):
    bus = EventBus()
    events = []

    async def handler(event_type, data):
        events.append(data)

    bus.on(EventType.SUGGESTION_STATUS_CHANGED, handler)
    engine = SuggestionStore(store, bus)
    s = await engine.submit(**_fields(description))
    await engine.set_status(s.id, "rejected")

    assert events == [{"suggestion_id": s.id, "from": "received", "to": "rejected"}]


async def test_set_pinned(suggestions: SuggestionStore, description: str):
    s = await suggestions.submit(**_fields(description))

    pinned = await suggestions.set_pinned(s.id, True)
    assert pinned.is_pinned is True
    assert pinned.updated_at > s.updated_at

    unpinned = await suggestions.set_pinned(s.id, False)
    assert unpinned.is_pinned is False


async def test_status_change_time_tracks_status_only(
    suggestions: SuggestionStore, description: str
):
    s = await suggestions.submit(**_fields(description))
    approved = await suggestions.set_status(s.id, "approved")
    assert approved.status_changed_at > s.status_changed_at
    assert approved.status_changed_at == approved.updated_at

    pinned = await suggestions.set_pinned(s.id, True)
    assert pinned.updated_at > approved.updated_at
    assert pinned.status_changed_at == approved.status_changed_at


async def test_set_pinned_missing(suggestions: SuggestionStore):
    with pytest.raises(NotFound):
        await suggestions.set_pinned("nonexistent-id", True)


async def test_list_by_visibility(suggestions: SuggestionStore, description: str):
    public = await suggestions.submit(**_fields(description))
    private = await suggestions.submit(**_fields(description, email="ops@mksolution.com"))

    visible = await suggestions.list_by_visibility(False)
    everything = await suggestions.list_by_visibility(True)

    assert [s.id for s in visible] == [public.id]
    assert {s.id for s in everything} == {public.id, private.id}


def test_is_well_formed_email() -> None:
    assert is_well_formed_email("ana@example.com")
    assert is_well_formed_email("ana.souza+sugestao@mail.example.com.br")
    assert not is_well_formed_email("ana@")
    assert not is_well_formed_email("ana example@mail.com")
    assert not is_well_formed_email("ana@@example.com")


def test_next_timestamp_strictly_later() -> None:
    future = "2999-01-01T00:00:00.000000+00:00"
    assert next_timestamp(future) == "2999-01-01T00:00:00.000001+00:00"
    assert next_timestamp(None) < future

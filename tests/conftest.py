"""Shared test fixtures for Mural."""

from __future__ import annotations

from pathlib import Path

import pytest

from mural.config import Config
from mural.core.board import BoardService
from mural.events.bus import EventBus
from mural.models.suggestion import Suggestion
from mural.storage.sqlite_store import SQLiteStore

DESCRIPTION = (
    "Seria muito útil poder exportar os relatórios financeiros diretamente em "
    "planilha, com filtros por período e por cliente, para evitar retrabalho "
    "manual no fechamento do mês e reduzir erros de digitação na conciliação."
)


@pytest.fixture
def tmp_db(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
async def store(tmp_db: Path) -> SQLiteStore:
    s = SQLiteStore(tmp_db)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(workspace_path=tmp_path, retry_delay=0.0)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def board(store: SQLiteStore, bus: EventBus, config: Config) -> BoardService:
    return BoardService(store, bus, config=config)


@pytest.fixture
def description() -> str:
    assert len(DESCRIPTION) >= 200
    return DESCRIPTION


@pytest.fixture
def submit(board: BoardService, description: str):
    """Factory that submits a valid suggestion, overriding any field."""

    async def _submit(**overrides) -> Suggestion:
        fields = {
            "title": "Exportar relatórios",
            "description": description,
            "module": "Financeiro",
            "email": "cliente@example.com",
        }
        fields.update(overrides)
        return await board.submit_suggestion(**fields)

    return _submit

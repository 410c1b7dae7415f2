from pathlib import Path

import pytest
from loguru import logger

from inboxdocs.utils.config import Settings
from domains.file_ingest.processors.pipeline import InboxProcessor


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        inbox_dir=tmp_path / "inbox",
        docs_output_dir=tmp_path / "docs" / "inbox",
        asset_dir=tmp_path / "docs" / "static" / "inbox",
        asset_url_prefix="/static/inbox",
        debounce_seconds=0.2,
    )


@pytest.fixture
def inbox(settings: Settings) -> Path:
    settings.inbox_dir.mkdir(parents=True)
    return settings.inbox_dir


@pytest.fixture
def processor(settings: Settings) -> InboxProcessor:
    return InboxProcessor(settings=settings)


@pytest.fixture
def log_messages():
    """Capture loguru records as (level, message) tuples."""
    records: list[tuple[str, str]] = []
    handler_id = logger.add(
        lambda message: records.append((message.record["level"].name, message.record["message"])),
        level="DEBUG",
    )
    yield records
    logger.remove(handler_id)


@pytest.fixture
def make_input():
    """Build an InputFile in memory, typed by extension like the pipeline does."""
    from inboxdocs.models.schemas import InputFile
    from domains.file_ingest.processors.registry import get_registry

    def _make(name: str, content):
        path = Path("/inbox") / name
        file_type = get_registry().type_for_path(path)
        raw = content if isinstance(content, bytes) else content.encode("utf-8")
        return InputFile(path=path, file_type=file_type, content=content, size_bytes=len(raw))

    return _make

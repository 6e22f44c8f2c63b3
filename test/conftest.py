"""
Shared test configuration and fixtures for the beat / b-roll pipeline.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

from beatcut.application.pipeline.broll.adapter_bundle import BrollPipelineAdapters
from beatcut.core.config import BeatConfig, SelectionConfig
from beatcut.core.models import AssetType, Candidate, Orientation, Word


def setup_logging():
    """Configure logging for the whole test run."""
    log_dir = Path("test/test_output/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "test_run.log"

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(filename=log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers across sessions
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger("beatcut").setLevel(logging.DEBUG)
    logging.getLogger("utils").setLevel(logging.DEBUG)

    return log_file


def pytest_configure(config):  # pylint: disable=unused-argument
    log_file = setup_logging()
    logger = logging.getLogger("pytest")
    logger.info("=" * 80)
    logger.info("Test session started; log file: %s", log_file)
    logger.info("=" * 80)


@pytest.fixture(autouse=True)
def log_test_name(request):
    """Log test name when test starts and finishes."""
    logger = logging.getLogger(request.node.nodeid)
    logger.info("🚀 Start: %s", request.node.name)
    start_time = datetime.now()

    def log_test_end():
        duration = (datetime.now() - start_time).total_seconds()
        logger.info("✅ Done in %.2fs", duration)

    request.addfinalizer(log_test_end)


# -------------------- Builders --------------------
def make_words(rows: Sequence[tuple]) -> List[Word]:
    """Build words from ``(start, end, text)`` tuples."""
    return [Word(start=s, end=e, text=t) for s, e, t in rows]


def video(
    cid: str,
    *,
    width: Optional[int] = 1920,
    height: Optional[int] = 1080,
    duration: float = 10.0,
    src: Optional[str] = None,
) -> Candidate:
    return Candidate(
        id=cid,
        src=src if src is not None else f"https://cdn.example/{cid}.mp4",
        asset_type=AssetType.VIDEO,
        width=width,
        height=height,
        duration=duration,
        frames=(f"https://cdn.example/{cid}-0.jpg", f"https://cdn.example/{cid}-1.jpg"),
    )


def image(
    cid: str,
    *,
    width: Optional[int] = 1920,
    height: Optional[int] = 1080,
    src: Optional[str] = None,
) -> Candidate:
    return Candidate(
        id=cid,
        src=src if src is not None else f"https://cdn.example/{cid}.jpg",
        asset_type=AssetType.IMAGE,
        width=width,
        height=height,
        frames=(f"https://cdn.example/{cid}-thumb.jpg",),
    )


class FakeProvider:
    """In-memory candidate provider keyed by asset kind.

    Records every call as ``(query, kind, orientation)``.
    """

    name = "fake"

    def __init__(
        self,
        results: Optional[Dict[AssetType, List[Candidate]]] = None,
        *,
        error: Optional[Exception] = None,
    ) -> None:
        self.results = results or {}
        self.error = error
        self.calls: List[tuple] = []

    async def search(
        self, query: str, asset_kind: AssetType, orientation_hint: Orientation
    ) -> List[Candidate]:
        self.calls.append((query, asset_kind, orientation_hint))
        if self.error is not None:
            raise self.error
        return list(self.results.get(asset_kind, []))


class FixedReranker:
    """Reranker that always answers with the same index (or raises)."""

    def __init__(self, answer=None, *, error: Optional[Exception] = None) -> None:
        self.answer = answer
        self.error = error
        self.seen: List[List[Candidate]] = []

    async def rerank(self, beat_text, orientation, preferred_type, candidates):
        self.seen.append(list(candidates))
        if self.error is not None:
            raise self.error
        return self.answer


# -------------------- Fixtures --------------------
@pytest.fixture
def beat_config() -> BeatConfig:
    return BeatConfig()


@pytest.fixture
def selection_config() -> SelectionConfig:
    return SelectionConfig()


@pytest.fixture
def paused_words() -> List[Word]:
    """0.0-6.0s of speech with a 0.7s pause after the word ending at 2.4s."""
    return make_words(
        [
            (0.0, 0.5, "Grind"),
            (0.5, 0.9, "the"),
            (0.9, 1.4, "beans"),
            (1.4, 2.4, "finely"),
            (3.1, 3.6, "then"),
            (3.6, 4.2, "pour"),
            (4.2, 4.5, "the"),
            (4.5, 5.2, "water"),
            (5.2, 6.0, "slowly"),
        ]
    )


@pytest.fixture
def fake_adapters():
    """Adapters bundle with a provider returning one landscape video and one still."""
    provider = FakeProvider(
        {
            AssetType.VIDEO: [video("v1", duration=12.0)],
            AssetType.IMAGE: [image("i1")],
        }
    )
    return BrollPipelineAdapters(
        candidate_provider=provider,
        reranker=FixedReranker(None),
    )

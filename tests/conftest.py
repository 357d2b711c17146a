"""Pytest configuration and fixtures for jdocmap tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator, List, Tuple

import pytest

from jdocmap.models import DeclarationNode, Span, SymbolKind
from jdocmap.symbols import symbols_from_lsp

FIXTURES = Path(__file__).parent / "fixtures"


class FakeTimer:
    def __init__(self, due: float, fn: Callable[[], None]) -> None:
        self.due = due
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Deterministic stand-in for ``threading.Timer``; time moves on ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: List[FakeTimer] = []

    def __call__(self, delay: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, fn)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [t for t in self.timers if not t.cancelled and t.due <= self.now + 1e-9]
        self.timers = [t for t in self.timers if t not in due]
        for timer in sorted(due, key=lambda t: t.due):
            timer.fn()

    @property
    def active(self) -> List[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]


def node(
    name: str,
    kind: SymbolKind,
    lines: Tuple[int, int],
    selection: int = None,
    children=(),
    detail: str = None,
) -> DeclarationNode:
    """Build a DeclarationNode with terse arguments."""
    start, end = lines
    return DeclarationNode(
        name=name,
        kind=kind,
        range=Span(start, end),
        selection_range=Span(selection, selection) if selection is not None else None,
        detail=detail,
        children=tuple(children),
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_config_home(temp_dir: Path, monkeypatch) -> Path:
    """Point the config file at a temporary directory."""
    monkeypatch.setattr("jdocmap.config.BASE_DIR", temp_dir)
    monkeypatch.setattr("jdocmap.config.CONFIG_FILE", temp_dir / "config.toml")
    return temp_dir


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def sample_java_path() -> Path:
    return FIXTURES / "UserService.java"


@pytest.fixture
def sample_symbols_path() -> Path:
    return FIXTURES / "UserService.symbols.json"


@pytest.fixture
def sample_java_source(sample_java_path: Path) -> str:
    return sample_java_path.read_text(encoding="utf-8")


@pytest.fixture
def user_service_symbols(sample_symbols_path: Path) -> List[DeclarationNode]:
    """Declaration tree for the sample file, as a language server reports it."""
    return symbols_from_lsp(json.loads(sample_symbols_path.read_text(encoding="utf-8")))

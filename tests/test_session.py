"""Tests for the per-document navigation session."""

from typing import List

import pytest

from jdocmap.models import DeclarationNode, SourceDocument
from jdocmap.symbols import SymbolCache, SymbolProvider, SymbolProviderError


class StaticProvider(SymbolProvider):
    def __init__(self, nodes: List[DeclarationNode]):
        self.nodes = nodes
        self.fail = False
        self.calls = 0

    def resolve(self, document):
        self.calls += 1
        if self.fail:
            raise SymbolProviderError("language server went away")
        return list(self.nodes)


class Recorder:
    def __init__(self):
        self.updates = []
        self.highlights = []
        self.clears = 0

    def on_update(self, doc):
        self.updates.append(doc)

    def on_highlight(self, method_id):
        self.highlights.append(method_id)

    def on_clear(self):
        self.clears += 1


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def provider(user_service_symbols):
    return StaticProvider(user_service_symbols)


@pytest.fixture
def document(sample_java_source):
    return SourceDocument("/src/UserService.java", sample_java_source, version=1)


@pytest.fixture
def session(provider, recorder, fake_scheduler):
    from jdocmap.session import DocumentSession

    return DocumentSession(
        provider,
        on_update=recorder.on_update,
        on_highlight=recorder.on_highlight,
        on_clear=recorder.on_clear,
        debounce_delay=0.3,
        scheduler=fake_scheduler,
    )


def _move(session, scheduler, lines, gaps=(0.0, 0.05, 0.04)):
    for line, gap in zip(lines, gaps):
        scheduler.advance(gap)
        session.handle_selection_change(line)


def test_refresh_builds_doc_and_index(session, recorder, document):
    doc = session.refresh(document)

    assert doc is not None
    assert recorder.updates == [doc]
    assert len(session.index) == 5
    assert session.version == 1
    assert session.locate(38).id == "findAll_37"
    assert session.locate(45) is None


def test_burst_of_moves_highlights_once(session, recorder, document, fake_scheduler):
    session.refresh(document)

    _move(session, fake_scheduler, [24, 38, 39])
    fake_scheduler.advance(0.3)
    assert recorder.highlights == ["findAll_37"]

    # Same callable again: suppressed.
    _move(session, fake_scheduler, [37, 38, 40])
    fake_scheduler.advance(0.3)
    assert recorder.highlights == ["findAll_37"]

    _move(session, fake_scheduler, [50])
    fake_scheduler.advance(0.3)
    assert recorder.highlights == ["findAll_37", "delete_49"]


def test_leaving_callables_rearms_guard(session, recorder, document, fake_scheduler):
    session.refresh(document)

    for line in (38, 45, 38):
        session.handle_selection_change(line)
        fake_scheduler.advance(0.3)

    assert recorder.highlights == ["findAll_37", "findAll_37"]


def test_stale_version_is_rejected(session, recorder, document, sample_java_source):
    session.refresh(SourceDocument(document.file_path, sample_java_source, version=3))
    assert session.refresh(document) is None
    assert session.version == 3
    assert len(recorder.updates) == 1


def test_provider_failure_keeps_previous_doc(session, provider, document, sample_java_source):
    first = session.refresh(document)
    provider.fail = True

    newer = SourceDocument(document.file_path, sample_java_source, version=2)
    assert session.refresh(newer) is None
    assert session.doc is first
    assert session.version == 1


def test_refresh_resets_highlight_guard(session, recorder, document, fake_scheduler, sample_java_source):
    session.refresh(document)
    session.handle_selection_change(38)
    fake_scheduler.advance(0.3)

    session.refresh(SourceDocument(document.file_path, sample_java_source, version=2))
    session.handle_selection_change(38)
    fake_scheduler.advance(0.3)

    assert recorder.highlights == ["findAll_37", "findAll_37"]


def test_auto_highlight_disabled(provider, recorder, document, fake_scheduler):
    from jdocmap.session import DocumentSession

    session = DocumentSession(
        provider,
        on_highlight=recorder.on_highlight,
        scheduler=fake_scheduler,
        enable_auto_highlight=False,
    )
    session.refresh(document)
    session.handle_selection_change(38)
    fake_scheduler.advance(1.0)
    assert recorder.highlights == []
    assert fake_scheduler.timers == []


def test_selection_before_first_parse_is_ignored(session, fake_scheduler, recorder):
    session.handle_selection_change(38)
    fake_scheduler.advance(1.0)
    assert recorder.highlights == []


def test_clear(session, recorder, document, fake_scheduler):
    session.refresh(document)
    session.handle_selection_change(38)
    session.clear()
    fake_scheduler.advance(1.0)

    assert recorder.clears == 1
    assert recorder.highlights == []
    assert session.doc is None
    assert session.locate(38) is None


def test_close_evicts_cached_symbols(provider, recorder, document, fake_scheduler):
    from jdocmap.session import DocumentSession

    cache = SymbolCache()
    session = DocumentSession(provider, scheduler=fake_scheduler, cache=cache, on_clear=recorder.on_clear)

    session.refresh(document)
    session.refresh(document)
    assert provider.calls == 1
    assert document.file_path in cache

    session.close()
    assert document.file_path not in cache
    assert recorder.clears == 1


def test_from_settings_uses_configured_delay_and_switch(provider, recorder, document, fake_scheduler):
    from jdocmap.config_manager import Settings
    from jdocmap.session import DocumentSession

    session = DocumentSession.from_settings(
        provider, Settings(debounce_delay_ms=100), on_highlight=recorder.on_highlight, scheduler=fake_scheduler,
    )
    session.refresh(document)
    session.handle_selection_change(38)
    fake_scheduler.advance(0.1)
    assert recorder.highlights == ["findAll_37"]

    quiet = DocumentSession.from_settings(
        provider, Settings(enable_auto_highlight=False), on_highlight=recorder.on_highlight, scheduler=fake_scheduler,
    )
    quiet.refresh(document)
    quiet.handle_selection_change(50)
    fake_scheduler.advance(1.0)
    assert recorder.highlights == ["findAll_37"]

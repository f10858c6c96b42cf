"""Tests for the changelog session: loading, views and concurrent loads."""

import asyncio
from pathlib import Path

import pytest

from depdelta.models import DisplayOption, ViewerConfig
from depdelta.session import ChangelogSession
from depdelta.source import ChangelogNotFoundError, JsonChangelogSource

FIXTURES = Path(__file__).parent / "fixtures"


class GatedSource(JsonChangelogSource):
    """Holds node fetches for one version until released."""

    def __init__(self, path, gated_version):
        super().__init__(path)
        self.gated_version = gated_version
        self.gate: asyncio.Event | None = None

    async def fetch_nodes(self, project, version):
        if version == self.gated_version:
            await self.gate.wait()
        return await super().fetch_nodes(project, version)


@pytest.fixture
def session():
    return ChangelogSession(JsonChangelogSource(FIXTURES / "changelog.json"))


def _load(session, project="shop", version="1.0-1.1"):
    return asyncio.run(session.load_changelog(project, version))


# ── Loading ───────────────────────────────────────────────────

class TestLoading:
    def test_projects(self, session):
        assert asyncio.run(session.load_projects()) == ["shop", "inventory"]
        assert session.project_names == ["shop", "inventory"]

    def test_select_project(self, session):
        assert asyncio.run(session.select_project("shop")) == ["1.0-1.1", "1.1-1.2"]
        assert session.selected_project == "shop"

    def test_load_changelog(self, session):
        assert _load(session) is True
        assert session.selected_version == "1.0-1.1"
        assert len(session.tree_data) == 32
        assert session.diagnostics.unresolved_types == ["shop.com.acme.Legacy"]

    def test_unknown_changelog(self, session):
        with pytest.raises(ChangelogNotFoundError):
            _load(session, version="nope")
        assert session.tree_data == []

    def test_loaded_tree(self, session):
        _load(session)
        top = session.data
        assert [n.name for n in top] == ["com.acme"]
        assert [c.name for c in top[0].children] == ["cart", "billing"]
        cart_class = top[0].children[0].children[0]
        assert [c.name for c in cart_class.children] == [
            "add(com.acme.cart.CartItem)", "total()", "Invoice",
        ]
        billing = top[0].children[1]
        assert [c.name for c in billing.children] == ["Invoice", "Cart"]
        assert [c.name for c in billing.children[0].children] == ["Cart"]

    def test_reload_replaces_records(self, session):
        _load(session)
        _load(session, version="1.1-1.2")
        assert [n.name for n in session.data] == ["com.acme.util"]
        assert session.diagnostics.is_empty


# ── Concurrent loads ─────────────────────────────────────────

class TestSupersededLoad:
    def test_latest_request_wins(self):
        source = GatedSource(FIXTURES / "changelog.json", gated_version="1.0-1.1")
        session = ChangelogSession(source)

        async def scenario():
            source.gate = asyncio.Event()
            slow = asyncio.create_task(session.load_changelog("shop", "1.0-1.1"))
            await asyncio.sleep(0)
            fast = await session.load_changelog("shop", "1.1-1.2")
            source.gate.set()
            return await slow, fast

        slow_applied, fast_applied = asyncio.run(scenario())
        assert fast_applied is True
        assert slow_applied is False
        assert session.selected_version == "1.1-1.2"
        assert [n.name for n in session.data] == ["com.acme.util"]


# ── Views ─────────────────────────────────────────────────────

class TestViews:
    def test_display_option(self, session):
        _load(session)
        forest = session.set_display_option("standard")
        assert [n.name for n in forest] == ["com"]
        forest = session.set_display_option(DisplayOption.FLATTEN_PACKAGES)
        assert [n.name for n in forest] == ["com.acme.cart", "com.acme.billing"]

    def test_graph_option_publishes_empty_tree(self, session):
        _load(session)
        assert session.set_display_option(DisplayOption.GRAPH) == []
        assert session.data == []

    def test_filter(self, session):
        _load(session)
        session.set_display_option(DisplayOption.STANDARD)
        forest = session.filter("c:invoice")
        billing = forest[0].children[0].children[0]
        assert billing.name == "billing"
        assert [c.name for c in billing.children] == ["Invoice"]
        assert [c.name for c in billing.children[0].children] == ["Cart"]

    def test_filter_reapplied_after_load(self, session):
        session.filter("d:invoice")
        _load(session)
        names = [n.name for n in session.data[0].walk()]
        assert "billing" not in names
        assert names.count("Invoice") == 2

    def test_tree_does_not_change_state(self, session):
        _load(session)
        session.tree(DisplayOption.STANDARD, "m:total")
        assert session.display_option is DisplayOption.COMPACT_MIDDLE_PACKAGES
        assert session.filter_text == ""

    def test_group_nodes(self):
        config = ViewerConfig(group_nodes=True, display_option=DisplayOption.STANDARD)
        session = ChangelogSession(JsonChangelogSource(FIXTURES / "changelog.json"), config)
        _load(session)
        names = [n.name for n in session.data[0].walk()]
        assert "Methods" in names
        assert "Added dependencies" in names

    def test_graph(self, session):
        _load(session)
        graph = session.graph()
        assert graph.root.name == "shop"
        assert len(graph.displayed_ids) == 8

    def test_tree_under_graph_display_is_empty(self, session):
        _load(session)
        session.set_display_option(DisplayOption.GRAPH)
        assert session.tree() == []
        assert session.tree(DisplayOption.STANDARD)[0].name == "com"

    def test_reset(self, session):
        _load(session)
        session.filter("c:cart")
        session.reset()
        assert session.tree_data == []
        assert session.filter_text == ""
        assert session.data == []


# ── Subscribers ──────────────────────────────────────────────

class TestSubscribers:
    def test_subscriber_receives_every_forest(self, session):
        received = []
        session.subscribe(received.append)
        _load(session)
        session.set_display_option(DisplayOption.STANDARD)
        assert len(received) == 2
        assert [n.name for n in received[-1]] == ["com"]

    def test_unsubscribe(self, session):
        received = []
        unsubscribe = session.subscribe(received.append)
        unsubscribe()
        _load(session)
        assert received == []

    def test_failing_subscriber_does_not_block_others(self, session):
        received = []

        def broken(forest):
            raise RuntimeError("boom")

        session.subscribe(broken)
        session.subscribe(received.append)
        _load(session)
        assert len(received) == 1


# ── Config ────────────────────────────────────────────────────

class TestViewerConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DEPDELTA_DATA", raising=False)
        config = ViewerConfig()
        assert config.root == "root"
        assert config.display_option is DisplayOption.COMPACT_MIDDLE_PACKAGES
        assert config.data_file is None

    def test_env_data_file(self, monkeypatch):
        monkeypatch.setenv("DEPDELTA_DATA", "/tmp/changelog.json")
        assert ViewerConfig().data_file == Path("/tmp/changelog.json")

    def test_parse_display_option(self):
        assert DisplayOption.parse("Flat Packages") is DisplayOption.FLATTEN_PACKAGES
        assert DisplayOption.parse("compact-middle-packages") is DisplayOption.COMPACT_MIDDLE_PACKAGES
        assert DisplayOption.parse("normal") is DisplayOption.STANDARD
        with pytest.raises(ValueError):
            DisplayOption.parse("sideways")

from pathlib import Path

from bs4 import BeautifulSoup
import pytest

from mdbook_tectonic.core.config import LatexConfig
from mdbook_tectonic.core.context import AssetRegistry, DocumentState, RenderContext
from mdbook_tectonic.core.exceptions import AssetMissingError
from mdbook_tectonic.core.rules import RenderEngine, RenderPhase, renders
from mdbook_tectonic.core.templates import load_template


def test_unique_label_suffixes_duplicates() -> None:
    state = DocumentState()

    assert state.unique_label("Getting Started") == "getting-started"
    assert state.unique_label("Getting started") == "getting-started-1"
    assert state.unique_label("Getting Started!") == "getting-started-2"
    assert state.unique_label("???") == "section"


def test_record_fallback_counts_per_language() -> None:
    state = DocumentState()

    assert state.record_fallback("foo") == 1
    assert state.record_fallback("foo") == 2
    assert state.record_fallback("bar") == 1
    assert state.language_fallbacks == {"foo": 2, "bar": 1}


def test_asset_registry_copies_images(tmp_path: Path) -> None:
    source = tmp_path / "src"
    (source / "img").mkdir(parents=True)
    (source / "img" / "pic.png").write_bytes(b"png")
    registry = AssetRegistry(source_root=source, output_root=tmp_path / "out")

    target = registry.register("images/img/pic.png", "img/pic.png")

    assert target == tmp_path / "out" / "images" / "img" / "pic.png"
    assert target.read_bytes() == b"png"
    assert registry.lookup("images/img/pic.png") == target
    assert registry.get("images/img/pic.png") == target
    assert len(registry) == 1


def test_asset_registry_without_copy(tmp_path: Path) -> None:
    (tmp_path / "pic.png").write_bytes(b"png")
    registry = AssetRegistry(source_root=tmp_path, output_root=tmp_path / "out", copy_assets=False)

    target = registry.register("images/pic.png", "pic.png")

    assert not target.exists()
    assert list(registry.items()) == [("images/pic.png", target)]


def test_asset_registry_missing_source(tmp_path: Path) -> None:
    registry = AssetRegistry(source_root=tmp_path, output_root=tmp_path / "out")

    with pytest.raises(AssetMissingError):
        registry.register("images/nope.png", "nope.png")
    with pytest.raises(AssetMissingError):
        registry.get("images/nope.png")
    assert registry.lookup("images/nope.png") is None


def _context(soup: BeautifulSoup) -> RenderContext:
    return RenderContext(
        config=LatexConfig(),
        template=load_template(),
        formatter=None,
        document=soup,
    )


def test_rules_run_by_phase_then_priority() -> None:
    calls: list[str] = []

    @renders("p", phase=RenderPhase.POST, name="late")
    def late(element, context):
        calls.append(f"late:{element.get_text()}")

    @renders("p", phase=RenderPhase.PRE, priority=10, name="second")
    def second(element, context):
        calls.append("second")

    @renders("p", phase=RenderPhase.PRE, priority=-5, name="first", auto_mark=False)
    def first(element, context):
        calls.append("first")

    soup = BeautifulSoup("<p>a</p>", "html.parser")
    engine = RenderEngine()
    engine.register_all([late, second, first])

    engine.run(soup, _context(soup))

    assert calls == ["first", "second", "late:a"]


def test_processed_nodes_are_skipped_by_later_rules_of_a_phase() -> None:
    calls: list[str] = []

    @renders("p", phase=RenderPhase.PRE, priority=-5, name="first")
    def first(element, context):
        calls.append("first")

    @renders("p", phase=RenderPhase.PRE, priority=10, name="second")
    def second(element, context):
        calls.append("second")

    @renders("p", phase=RenderPhase.POST, name="late")
    def late(element, context):
        calls.append("late")

    soup = BeautifulSoup("<p>a</p>", "html.parser")
    engine = RenderEngine()
    engine.register_all([first, second, late])

    engine.run(soup, _context(soup))

    assert calls == ["first", "late"]


def test_after_children_rules_see_rendered_children() -> None:
    seen: list[str] = []

    @renders("em", phase=RenderPhase.POST)
    def emphasis(element, context):
        element.replace_with(f"*{element.get_text()}*")

    @renders("p", phase=RenderPhase.POST, after_children=True)
    def paragraph(element, context):
        seen.append(element.get_text())

    soup = BeautifulSoup("<p>a <em>b</em></p>", "html.parser")
    engine = RenderEngine()
    engine.register_all([emphasis, paragraph])

    engine.run(soup, _context(soup))

    assert seen == ["a *b*"]


def test_non_nestable_rules_hide_children() -> None:
    visited: list[str] = []

    @renders("pre", phase=RenderPhase.PRE, nestable=False)
    def block(element, context):
        visited.append("pre")

    @renders("code", phase=RenderPhase.PRE)
    def code(element, context):
        visited.append("code")

    soup = BeautifulSoup("<pre><code>x</code></pre><code>y</code>", "html.parser")
    engine = RenderEngine()
    engine.register_all([block, code])

    engine.run(soup, _context(soup))

    assert visited == ["pre", "code"]


def test_document_rules_receive_the_root() -> None:
    roots = []

    @renders(phase=RenderPhase.BLOCK)
    def whole(root, context):
        roots.append(root)

    soup = BeautifulSoup("<p>a</p>", "html.parser")
    engine = RenderEngine()
    engine.register(whole)

    engine.run(soup, _context(soup))

    assert roots == [soup]


def test_undecorated_handlers_are_rejected() -> None:
    def plain(element, context):
        return None

    with pytest.raises(TypeError):
        RenderEngine().register(plain)


def test_registry_describe_lists_rules_in_order() -> None:
    @renders("h1", "h2", phase=RenderPhase.POST, name="headings")
    def headings(element, context):
        return None

    engine = RenderEngine()
    engine.register(headings)

    rows = engine.registry.describe()

    assert [(row["phase"], row["tag"], row["name"]) for row in rows] == [
        ("POST", "h1", "headings"),
        ("POST", "h2", "headings"),
    ]
    assert len(engine.registry) == 1

from pathlib import Path

import pytest

from mdbook_tectonic.adapters.latex.renderer import LaTeXRenderer
from mdbook_tectonic.adapters.markdown import render_markdown
from mdbook_tectonic.core.config import LatexConfig
from mdbook_tectonic.core.context import DocumentState
from mdbook_tectonic.core.diagnostics import RecordingEmitter
from mdbook_tectonic.core.exceptions import LatexRenderingError
from mdbook_tectonic.core.templates import load_template


@pytest.fixture(scope="module")
def renderer() -> LaTeXRenderer:
    return LaTeXRenderer(load_template())


def _render(renderer: LaTeXRenderer, markdown: str, **kwargs: object) -> str:
    return renderer.render(render_markdown(markdown), **kwargs)


def test_paragraph_text_is_escaped(renderer: LaTeXRenderer) -> None:
    assert _render(renderer, "Fish & chips cost 5$ (100%)") == (
        "Fish \\& chips cost 5\\$ (100\\%)\n"
    )


def test_paragraphs_are_separated_by_blank_lines(renderer: LaTeXRenderer) -> None:
    assert _render(renderer, "One.\n\nTwo.") == "One.\n\nTwo.\n"


def test_headings_map_to_sectioning_commands(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "# Getting Started\n\n## Install\n\n#### Details\n\n###### Fine")

    assert "\\section{Getting Started}\\label{getting-started}" in latex
    assert "\\subsection{Install}\\label{install}" in latex
    assert "\\paragraph{Details}\\label{details}" in latex
    assert "\\subparagraph{Fine}\\label{fine}" in latex


def test_duplicate_headings_get_unique_labels(renderer: LaTeXRenderer) -> None:
    state = DocumentState()

    latex = _render(renderer, "# Intro\n\n# Intro", state=state)

    assert "\\label{intro}" in latex
    assert "\\label{intro-1}" in latex
    assert [heading["ref"] for heading in state.headings] == ["intro", "intro-1"]


def test_inline_formatting(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "**bold**, *it* and ~~gone~~")

    assert latex == "\\textbf{bold}, \\emph{it} and \\sout{gone}\n"


def test_inline_code_is_escaped(renderer: LaTeXRenderer) -> None:
    assert _render(renderer, "Run `cargo-fmt my_crate`") == (
        "Run \\texttt{cargo-\\allowbreak{}fmt my\\_crate}\n"
    )


def test_code_block_with_declared_language(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "```rust\nlet x = true;\n```")

    assert latex == "\\begin{lstlisting}[language=rust]\nlet x = true;\n\\end{lstlisting}\n"


def test_code_block_content_is_not_escaped(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "```text\n50% of a_b & c\n```")

    assert "50% of a_b & c" in latex


def test_unknown_language_falls_back_once(renderer: LaTeXRenderer) -> None:
    emitter = RecordingEmitter()
    state = DocumentState()

    latex = _render(
        renderer, "```foo\nx\n```\n\n```foo\ny\n```", state=state, emitter=emitter
    )

    assert "[language=" not in latex
    assert emitter.events_named("language_fallback") == [{"language": "foo"}]
    assert state.language_fallbacks == {"foo": 2}


def test_pygments_engine_records_style_definitions() -> None:
    renderer = LaTeXRenderer(load_template(), LatexConfig(code_engine="pygments"))
    state = DocumentState()

    latex = renderer.render(render_markdown("```rust\nlet x = true;\n```"), state=state)

    assert "\\PY{k}{true}" in latex
    assert state.pygments_styles


def test_links(renderer: LaTeXRenderer) -> None:
    latex = _render(
        renderer,
        "[docs](https://example.com/a%20b) <https://example.com> "
        "[up](#getting-started) [other](other.md) [there](other.md#Usage)",
    )

    assert "\\href{https://example.com/a\\%20b}{docs}" in latex
    assert "\\url{https://example.com}" in latex
    assert "\\hyperref[getting-started]{up}" in latex
    assert " other " in latex
    assert "\\hyperref[usage]{there}" in latex


def test_bullet_list(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "- one\n- two")

    assert latex == "\\begin{itemize}\n  \\item one\n  \\item two\n\\end{itemize}\n"


def test_task_list(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "- [x] done\n- [ ] todo")

    assert "\\item[$\\boxtimes$] done" in latex
    assert "\\item[$\\square$] todo" in latex


def test_ordered_list_start(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "3. three\n4. four")

    assert "\\begin{enumerate}" in latex
    assert "\\setcounter{enumi}{2}" in latex
    assert "\\item three" in latex


def test_ordered_list_from_one_has_no_counter(renderer: LaTeXRenderer) -> None:
    assert "\\setcounter" not in _render(renderer, "1. a\n2. b")


def test_block_quote(renderer: LaTeXRenderer) -> None:
    assert _render(renderer, "> Quoted *text*") == (
        "\\begin{quote}\nQuoted \\emph{text}\n\\end{quote}\n"
    )


def test_table(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "| Name | Size |\n|------|-----:|\n| a_b | 2 |\n")

    assert "\\begin{longtable}{L{0.45\\linewidth}R{0.45\\linewidth}}" in latex
    assert "Name & Size \\\\\n\\midrule\n\\endhead" in latex
    assert "a\\_b & 2 \\\\" in latex
    assert "\\end{longtable}" in latex


def test_standalone_image_becomes_a_figure(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, '![Flow](images/ch/flow.png "Data flow")')

    assert latex.startswith("\\begin{center}\n")
    assert (
        "\\includegraphics[width=\\linewidth,height=0.5\\textheight,keepaspectratio]"
        "{images/ch/flow.png}"
    ) in latex
    assert "\\par\\small\\emph{Data flow}" in latex


def test_inline_image(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "Icon ![i](images/icon.png) here")

    assert "\\begin{center}" not in latex
    assert "{images/icon.png} here" in latex


def test_remote_image_becomes_a_link(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "![badge](https://example.com/badge.svg)")

    assert "\\href{https://example.com/badge.svg}{badge}" in latex


def test_footnotes_are_inlined(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "Text[^note].\n\n[^note]: The note.")

    assert latex == "Text\\footnote{The note.}.\n"


def test_line_breaks_and_rules(renderer: LaTeXRenderer) -> None:
    latex = _render(renderer, "line one  \nline two\n\n---\n\nafter")

    assert "line one\\\\\nline two" in latex
    assert "\\noindent\\rule{\\linewidth}{0.4pt}" in latex


def test_glyphs_are_left_to_newunicodechar(renderer: LaTeXRenderer) -> None:
    assert _render(renderer, "it’s") == "it’s\n"


def test_glyphs_are_substituted_without_newunicodechar(tmp_path: Path) -> None:
    path = tmp_path / "plain.tex"
    path.write_text(
        "\\title{}\\author{}\\date{}\n\\begin{document}\n%% mdbook-tectonic begin\n"
        "\\end{document}\n",
        encoding="utf-8",
    )
    renderer = LaTeXRenderer(load_template(path))

    assert renderer.render(render_markdown("it’s")) == "it's\n"


def test_invalid_list_start_aborts() -> None:
    renderer = LaTeXRenderer(load_template())

    with pytest.raises(LatexRenderingError):
        renderer.render('<ol start="x"><li>a</li></ol>')


def test_registered_rules_are_described(renderer: LaTeXRenderer) -> None:
    names = {entry["name"] for entry in renderer.describe_registered_rules()}

    assert {"code_blocks", "render_headings", "links", "tables", "images"} <= names


def test_empty_fragment(renderer: LaTeXRenderer) -> None:
    assert renderer.render("") == ""

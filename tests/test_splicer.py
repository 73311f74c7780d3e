import pytest

from mdbook_tectonic.core.exceptions import SpliceError, TemplateError
from mdbook_tectonic.core.templates import (
    INSERTION_MARKER,
    count_markers,
    find_marker,
    load_template,
    splice,
    substitute_metadata,
)


TEMPLATE = "\\begin{document}\n%% mdbook-tectonic begin\n\\end{document}\n"


def test_content_lands_after_the_marker_line() -> None:
    result = splice(TEMPLATE, "Hello")

    assert result == "\\begin{document}\n%% mdbook-tectonic begin\nHello\n\\end{document}\n"


def test_splicing_is_deterministic() -> None:
    template = load_template()
    body = "A paragraph.\n"

    assert template.splice(body) == template.splice(body)
    assert splice(TEMPLATE, body) == splice(TEMPLATE, body)


def test_inserted_content_is_not_scanned_for_markers() -> None:
    result = splice(TEMPLATE, f"% {INSERTION_MARKER}\n")

    assert count_markers(result) == 2


def test_missing_marker() -> None:
    with pytest.raises(SpliceError):
        splice("\\begin{document}\n\\end{document}\n", "x")


def test_duplicate_marker() -> None:
    template = TEMPLATE + f"%% {INSERTION_MARKER}\n"

    with pytest.raises(SpliceError):
        splice(template, "x")


def test_splice_error_is_a_template_error() -> None:
    with pytest.raises(TemplateError):
        find_marker("")


def test_marker_on_last_line() -> None:
    assert splice("%% mdbook-tectonic begin", "x") == "%% mdbook-tectonic begin\nx\n"


def test_metadata_substitution() -> None:
    source = "\\title{}\n\\author{}\n\\date{}\n"

    result = substitute_metadata(source, title="Guide", authors=["Ann", "Bob"], date=r"\today")

    assert result == "\\title{Guide}\n\\author{Ann \\and Bob}\n\\date{\\today}\n"


def test_empty_metadata_keeps_placeholders_empty() -> None:
    source = "\\title{}\n\\author{}\n\\date{}\n"

    assert substitute_metadata(source, title="", authors=[], date="") == source


def test_commented_metadata_placeholders_are_left_alone() -> None:
    source = "% \\title{}\n\\title{}\n\\author{} % \\date{}\n\\date{}\n"

    result = substitute_metadata(source, title="Guide", authors=["Ann"], date="2024")

    assert result == "% \\title{}\n\\title{Guide}\n\\author{Ann} % \\date{}\n\\date{2024}\n"


def test_placeholder_after_an_escaped_percent_is_filled() -> None:
    source = "50\\% \\title{}\n"

    assert substitute_metadata(source, title="Guide", authors=[], date="") == (
        "50\\% \\title{Guide}\n"
    )

from mdbook_tectonic.adapters.markdown import (
    ImageReference,
    normalise_fence_info,
    render_markdown,
    rewrite_image_paths,
)


def test_fence_attributes_are_reduced_to_the_language() -> None:
    source = "```rust,ignore\nfn main() {}\n```\n"

    assert normalise_fence_info(source) == "```rust\nfn main() {}\n```\n"


def test_fence_attributes_with_spaces() -> None:
    source = "~~~console hidelines=#\n$ ls\n~~~\n"

    assert normalise_fence_info(source) == "~~~console\n$ ls\n~~~\n"


def test_fence_contents_are_left_alone() -> None:
    source = "````markdown\n```rust,ignore\n```\n````\n"

    assert normalise_fence_info(source) == source


def test_image_paths_are_relocated_under_images() -> None:
    rewritten = rewrite_image_paths("See ![A diagram](img/flow.png).\n", "guide")

    assert rewritten.content == "See ![A diagram](images/guide/img/flow.png).\n"
    assert rewritten.images == [
        ImageReference(source="guide/img/flow.png", target="images/guide/img/flow.png")
    ]


def test_image_titles_are_kept() -> None:
    rewritten = rewrite_image_paths('![logo](logo.svg "The logo")\n', "")

    assert rewritten.content == '![logo](images/logo.svg "The logo")\n'


def test_parent_relative_images() -> None:
    rewritten = rewrite_image_paths("![x](../assets/x.png)\n", "guide/advanced")

    assert rewritten.images[0].source == "guide/assets/x.png"
    assert rewritten.content == "![x](images/guide/assets/x.png)\n"


def test_images_outside_the_book_keep_their_basename() -> None:
    rewritten = rewrite_image_paths("![x](../x.png)\n", "")

    target = rewritten.images[0].target
    assert target.startswith("images/_external/")
    assert target.endswith("/x.png")
    assert rewritten.content == f"![x]({target})\n"


def test_outside_images_with_the_same_name_do_not_collide() -> None:
    rewritten = rewrite_image_paths("![a](../a/pic.png) ![b](../b/pic.png)\n", "")

    first, second = rewritten.images
    assert (first.source, second.source) == ("../a/pic.png", "../b/pic.png")
    assert first.target != second.target
    assert rewrite_image_paths("![a](../a/pic.png)\n", "").images == [first]


def test_reference_style_images_are_relocated() -> None:
    source = "![pic][logo] and ![Icon][]\n\n[logo]: img/pic.png \"Logo\"\n[icon]: icon.svg\n"

    rewritten = rewrite_image_paths(source, "ch")

    assert "[logo]: images/ch/img/pic.png \"Logo\"\n" in rewritten.content
    assert "[icon]: images/ch/icon.svg\n" in rewritten.content
    assert [image.target for image in rewritten.images] == [
        "images/ch/img/pic.png",
        "images/ch/icon.svg",
    ]


def test_link_definitions_not_used_by_images_are_kept() -> None:
    source = "See [the guide][guide] and ![shot].\n\n[guide]: guide.md\n[shot]: shot.png\n"

    rewritten = rewrite_image_paths(source, "")

    assert "[guide]: guide.md\n" in rewritten.content
    assert "[shot]: images/shot.png\n" in rewritten.content


def test_paths_with_spaces_are_wrapped() -> None:
    rewritten = rewrite_image_paths("![x](<my shot.png>)\n", "")

    assert rewritten.content == "![x](<images/my shot.png>)\n"


def test_images_inside_code_fences_are_untouched() -> None:
    source = "```markdown\n![x](img/x.png)\n```\n![y](img/y.png)\n"

    rewritten = rewrite_image_paths(source, "ch")

    assert "```markdown\n![x](img/x.png)\n```\n" in rewritten.content
    assert "![y](images/ch/img/y.png)" in rewritten.content
    assert [image.source for image in rewritten.images] == ["ch/img/y.png"]


def test_remote_images_are_untouched() -> None:
    source = "![badge](https://img.shields.io/badge.svg)\n"

    rewritten = rewrite_image_paths(source, "ch")

    assert rewritten.content == source
    assert rewritten.images == []


def test_render_markdown_extensions() -> None:
    html = render_markdown("~~gone~~ and `code`\n\n- [x] done\n")

    assert "<del>gone</del>" in html
    assert "<code>code</code>" in html
    assert 'type="checkbox"' in html

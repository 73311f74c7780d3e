import io
from pathlib import Path
import stat
import sys

import pytest
from rich.console import Console

from mdbook_tectonic.adapters.latex.tectonic import (
    build_command,
    compile_pdf,
    run_tectonic,
    select_tectonic_binary,
)
from mdbook_tectonic.core.exceptions import CompilationError, TectonicNotFoundError


pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell stubs")


def _stub(tmp_path: Path, body: str) -> Path:
    script = tmp_path / "bin" / "tectonic"
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


SUCCESS = """cat > input.tex
echo "$@" > args.txt
echo "note: Running TeX ..."
echo "warning: overfull hbox"
printf '%%PDF-1.5' > texput.pdf
"""


def test_build_command_reads_stdin() -> None:
    assert build_command(Path("/usr/bin/tectonic"), Path("out")) == [
        "/usr/bin/tectonic",
        "--outfmt=pdf",
        "-o",
        "out",
        "-",
    ]


def test_missing_binary(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("mdbook_tectonic.adapters.latex.tectonic.shutil.which", lambda name: None)

    with pytest.raises(TectonicNotFoundError, match="PATH"):
        select_tectonic_binary()
    with pytest.raises(TectonicNotFoundError, match="no-such-tectonic"):
        select_tectonic_binary("no-such-tectonic")


def test_binary_found_on_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "mdbook_tectonic.adapters.latex.tectonic.shutil.which",
        lambda name: "/usr/local/bin/tectonic",
    )

    selection = select_tectonic_binary()

    assert selection.path == Path("/usr/local/bin/tectonic")
    assert selection.source == "system"


def test_configured_binary_wins(tmp_path: Path) -> None:
    script = _stub(tmp_path, SUCCESS)

    selection = select_tectonic_binary(str(script))

    assert selection.path == script
    assert selection.source == "configured"


def test_compile_pdf_renames_the_stdin_job(tmp_path: Path) -> None:
    script = _stub(tmp_path, SUCCESS)
    target = tmp_path / "out" / "My-Book.pdf"

    produced = compile_pdf("\\documentclass{book}\n", target, configured_binary=script)

    output_dir = tmp_path / "out"
    assert produced == target
    assert target.read_bytes() == b"%PDF-1.5"
    assert not (output_dir / "texput.pdf").exists()
    assert (output_dir / "input.tex").read_text(encoding="utf-8") == "\\documentclass{book}\n"
    args = (output_dir / "args.txt").read_text(encoding="utf-8").split()
    assert args == ["--outfmt=pdf", "-o", str(output_dir), "-"]


def test_output_is_streamed_to_the_console(tmp_path: Path) -> None:
    script = _stub(tmp_path, SUCCESS)
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, width=120)

    result = run_tectonic("x", tmp_path / "out", binary=script, console=console)

    assert result.returncode == 0
    assert result.output == ["note: Running TeX ...", "warning: overfull hbox"]
    assert "overfull hbox" in buffer.getvalue()


def test_failure_raises_with_status(tmp_path: Path) -> None:
    script = _stub(tmp_path, 'cat > /dev/null\necho "error: boom"\nexit 3\n')

    with pytest.raises(CompilationError, match="boom") as excinfo:
        compile_pdf("x", tmp_path / "out" / "book.pdf", configured_binary=script)

    assert excinfo.value.returncode == 3
    assert "status 3" in str(excinfo.value)


def test_missing_pdf_is_an_error(tmp_path: Path) -> None:
    script = _stub(tmp_path, "cat > /dev/null\n")

    with pytest.raises(CompilationError, match="did not produce"):
        compile_pdf("x", tmp_path / "out" / "book.pdf", configured_binary=script)

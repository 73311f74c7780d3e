"""Tectonic selection and invocation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
from pathlib import Path
import shutil
import subprocess

from rich.console import Console
from rich.text import Text

from mdbook_tectonic.core.exceptions import CompilationError, TectonicNotFoundError


logger = logging.getLogger(__name__)

STDIN_JOB_NAME = "texput"


@dataclass(slots=True)
class TectonicSelection:
    """Resolved Tectonic binary and its origin."""

    path: Path
    source: str  # "configured" or "system"


@dataclass(slots=True)
class TectonicResult:
    returncode: int
    pdf_path: Path
    output: list[str]


def select_tectonic_binary(configured: str | Path | None = None) -> TectonicSelection:
    """Return the Tectonic binary to invoke.

    An explicitly configured path wins over the first ``tectonic`` on ``PATH``.
    """
    if configured:
        candidate = Path(configured).expanduser()
        if candidate.is_file():
            return TectonicSelection(path=candidate, source="configured")
        resolved = shutil.which(str(configured))
        if resolved is None:
            raise TectonicNotFoundError(f"Configured Tectonic binary '{configured}' not found")
        return TectonicSelection(path=Path(resolved), source="configured")

    system_path = shutil.which("tectonic")
    if system_path is None:
        raise TectonicNotFoundError(
            "Tectonic is not available on PATH; install it or set "
            "'tectonic' in [output.tectonic]"
        )
    return TectonicSelection(path=Path(system_path), source="system")


def build_command(binary: Path, output_dir: Path) -> list[str]:
    """Return the argv compiling a document read from stdin into ``output_dir``."""
    return [str(binary), "--outfmt=pdf", "-o", str(output_dir), "-"]


def _classify(line: str) -> str | None:
    lowered = line.lower()
    if lowered.startswith("error") or "error:" in lowered:
        return "bold red"
    if lowered.startswith("warning") or "warning:" in lowered:
        return "yellow"
    return None


def run_tectonic(
    document: str,
    output_dir: Path,
    *,
    binary: Path,
    console: Console | None = None,
    extra_args: Sequence[str] = (),
) -> TectonicResult:
    """Compile ``document`` with Tectonic, streaming its output.

    The PDF lands in ``output_dir`` as ``texput.pdf``; relative resources are
    resolved from ``output_dir`` as well.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    command = build_command(binary, output_dir)
    command[1:1] = list(extra_args)
    logger.debug("Running %s", " ".join(command))

    captured: list[str] = []
    try:
        with subprocess.Popen(
            command,
            cwd=str(output_dir),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            encoding="utf-8",
            errors="replace",
        ) as process:
            assert process.stdin is not None
            assert process.stdout is not None
            process.stdin.write(document)
            process.stdin.close()
            for line in process.stdout:
                payload = line.rstrip("\n")
                captured.append(payload)
                if console is not None:
                    console.print(Text(payload, style=_classify(payload) or ""))
                else:
                    logger.debug("tectonic: %s", payload)
            returncode = process.wait()
    except OSError as exc:
        raise CompilationError(f"Unable to run Tectonic ({binary}): {exc}") from exc

    pdf_path = output_dir / f"{STDIN_JOB_NAME}.pdf"
    if returncode != 0:
        tail = "\n".join(captured[-10:])
        message = f"Tectonic exited with status {returncode}"
        if tail:
            message = f"{message}:\n{tail}"
        raise CompilationError(message, returncode=returncode)
    return TectonicResult(returncode=returncode, pdf_path=pdf_path, output=captured)


def compile_pdf(
    document: str,
    target: Path,
    *,
    configured_binary: str | Path | None = None,
    console: Console | None = None,
) -> Path:
    """Compile ``document`` and move the PDF to ``target``."""
    selection = select_tectonic_binary(configured_binary)
    logger.info("Using %s Tectonic at %s", selection.source, selection.path)
    result = run_tectonic(document, target.parent, binary=selection.path, console=console)
    if not result.pdf_path.exists():
        raise CompilationError(f"Tectonic did not produce {result.pdf_path}", returncode=0)
    if result.pdf_path != target:
        result.pdf_path.replace(target)
    return target


__all__ = [
    "STDIN_JOB_NAME",
    "TectonicResult",
    "TectonicSelection",
    "build_command",
    "compile_pdf",
    "run_tectonic",
    "select_tectonic_binary",
]

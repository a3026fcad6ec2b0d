"""
Delivery of the formatted report: clipboard and output file.
"""

from __future__ import annotations

import time
from pathlib import Path

import pyperclip

from .core import ClipboardError, OutputError

# Some clipboard backends drop the data if the owner exits right away.
CLIPBOARD_HOLD_SECONDS = 2.0


def copy_to_clipboard(text: str, hold: float = CLIPBOARD_HOLD_SECONDS) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError(f"Could not copy to clipboard: {e}")
    if hold > 0:
        time.sleep(hold)


def write_output(text: str, out_path: Path) -> Path:
    """Overwrite *out_path* with *text* exactly as it was copied."""
    try:
        out_path = out_path.resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{out_path}': {e}")

    out_dir = out_path.parent
    if not out_dir.exists():
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create output directory '{out_dir}': {e}")

    try:
        with out_path.open("w", encoding="utf-8", newline="\n") as out_fh:
            out_fh.write(text)
    except OSError as e:
        raise OutputError(f"Could not write to output file '{out_path}': {e}")
    return out_path

"""
CLI entrypoint for listclip package.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore

from . import __version__
from .core import (
    ClipboardError,
    ConfigFileError,
    InvalidRootError,
    OutputError,
    OutputFormat,
    Report,
    TraversalOptions,
    format_report,
    load_extra_patterns,
    run,
    say,
)
from .output import copy_to_clipboard, write_output


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="listclip",
        description="List files and copy to clipboard, optionally with contents.",
    )
    p.add_argument(
        "-s", "--start", default=".", metavar="DIR",
        help="Starting directory (default: current dir)",
    )
    p.add_argument(
        "-o", "--out", type=Path, metavar="FILE",
        help="Output file to save the list and contents",
    )
    p.add_argument(
        "-v", "--verbose", action="store_true",
        help="Print every path while walking",
    )
    p.add_argument(
        "--no-gitignore", action="store_true",
        help="Do not respect .gitignore / .ignore rules",
    )
    p.add_argument(
        "-e", "--ext", action="append", default=[], metavar="EXT",
        help="Only read files with this extension (repeatable: -e py -e toml)",
    )
    p.add_argument(
        "--no-content", action="store_true",
        help="Disable content inclusion, list files only",
    )
    p.add_argument("--json", action="store_true", help="Output as JSON")
    p.add_argument(
        "--config", type=Path,
        help="Path to a file with extra ignore patterns (one per line)",
    )
    p.add_argument(
        "--no-clipboard", action="store_true",
        help="Skip the clipboard (use with --out or for a dry run)",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def _summary(report: Report, options: TraversalOptions, copied: bool) -> str:
    what = "file list" if not options.include_content else "file list with content"
    where = "Copied" if copied else "Collected"
    tail = " to clipboard" if copied else ""
    filters = ", ".join(sorted(options.extensions)) or "none"
    return (
        f"[listclip] {where} {what}{tail}. "
        f"{report.files_processed} files processed, filters: {filters}."
    )


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)

        extra_spec = None
        if ns.config:
            try:
                extra_spec = load_extra_patterns(ns.config.resolve())
            except ConfigFileError as e:
                print(f"Error: {e}", file=sys.stderr)
                sys.exit(1)

        options = TraversalOptions(
            start=ns.start,
            respect_ignore=not ns.no_gitignore,
            extensions=frozenset(ns.ext),
            include_content=not ns.no_content,
            output_format=OutputFormat.JSON if ns.json else OutputFormat.PLAIN,
            extra_spec=extra_spec,
            verbose=ns.verbose,
        )

        try:
            report = run(options)
        except InvalidRootError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        output = format_report(report, options.output_format)

        if not ns.no_clipboard:
            try:
                copy_to_clipboard(output)
            except ClipboardError as e:
                print(f"Error: {e}", file=sys.stderr)
                sys.exit(1)

        if ns.out:
            try:
                write_output(output, ns.out)
            except OutputError as e:
                print(f"Error: {e}", file=sys.stderr)
                sys.exit(1)

        if not ns.verbose:
            say(_summary(report, options, copied=not ns.no_clipboard), Fore.GREEN)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

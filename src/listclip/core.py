"""
Core logic for listclip package.
"""

from __future__ import annotations

import configparser
import enum
import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, List, Optional, TextIO, Tuple, Union

import pathspec
from colorama import Fore, Style, just_fix_windows_console

just_fix_windows_console()

PathLike = Union[str, "os.PathLike[str]"]


# Exceptions
class ListclipError(Exception): ...
class InvalidRootError(ListclipError): ...
class ConfigFileError(ListclipError): ...
class OutputError(ListclipError): ...
class ClipboardError(ListclipError): ...


# Defaults & helpers
BINARY_SNIFF_BYTES = 1024
LIST_HEADER = "=== File & Directory List ===\n"


class OutputFormat(enum.Enum):
    PLAIN = "plain"
    JSON = "json"


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"  # broken links, sockets, links to directories


@dataclass
class TraversalOptions:
    start: PathLike = "."
    respect_ignore: bool = True
    extensions: FrozenSet[str] = frozenset()
    include_content: bool = True
    output_format: OutputFormat = OutputFormat.PLAIN
    extra_spec: Optional[pathspec.PathSpec] = None
    verbose: bool = False


@dataclass
class Entry:
    path: str
    kind: EntryKind
    content: Optional[str] = None
    matched: bool = False


@dataclass
class Report:
    entries: List[Entry] = field(default_factory=list)

    @property
    def files_processed(self) -> int:
        return sum(1 for e in self.entries if e.matched)

    def content_blocks(self) -> str:
        """Concatenate ``=== path ===`` blocks for every captured file."""
        return "".join(
            f"\n=== {e.path} ===\n{e.content}\n"
            for e in self.entries
            if e.content is not None
        )


def say(msg: str, color: str = "", stream: Optional[TextIO] = None) -> None:
    text = f"{color}{msg}{Style.RESET_ALL}" if color else msg
    print(text, file=stream or sys.stdout)


def _warn(msg: str) -> None:
    say(f"[listclip] ! {msg}", Fore.YELLOW, sys.stderr)


# Ignore-file utilities
def _read_spec(path: str) -> Optional["pathspec.PathSpec"]:
    if not os.path.isfile(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            patterns = [line.rstrip("\r\n") for line in fh]
    except (OSError, UnicodeDecodeError):
        return None
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


def load_extra_patterns(config_path: Path) -> "pathspec.PathSpec":
    """Read newline-separated patterns from *config_path* and compile spec."""
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            lines = [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def _verdict(spec: "pathspec.PathSpec", rel: str) -> Optional[bool]:
    """Last matching pattern wins: True ignores, False re-includes."""
    verdict = None
    for pattern in spec.patterns:
        if pattern.include is None:
            continue
        if pattern.match_file(rel) is not None:
            verdict = pattern.include
    return verdict


def find_repo_root(start: PathLike) -> Optional[str]:
    cur = os.path.abspath(os.fspath(start))
    if not os.path.isdir(cur):
        cur = os.path.dirname(cur)
    while True:
        if _has_git(cur):
            return cur
        parent = os.path.dirname(cur)
        if parent == cur:
            return None
        cur = parent


def _has_git(dir_path: str) -> bool:
    return os.path.exists(os.path.join(dir_path, ".git"))


def global_excludes_path() -> str:
    """``core.excludesFile`` from ``~/.gitconfig``, else the XDG default."""
    parser = configparser.RawConfigParser(strict=False, interpolation=None)
    try:
        parser.read(os.path.expanduser("~/.gitconfig"), encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError):
        parser = None
    if parser is not None and parser.has_option("core", "excludesfile"):
        value = parser.get("core", "excludesfile").strip().strip('"')
        if value:
            return os.path.expanduser(value)
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return os.path.join(xdg, "git", "ignore")


Layer = Tuple[str, "pathspec.PathSpec"]


def _first_verdict(layers: List[Layer], path: str, is_dir: bool) -> Optional[bool]:
    """Deepest layer with a matching pattern decides."""
    for base, spec in reversed(layers):
        try:
            rel = os.path.relpath(path, base).replace(os.sep, "/")
        except ValueError:
            continue
        if rel == ".." or rel.startswith("../"):
            continue
        if is_dir:
            rel += "/"
        verdict = _verdict(spec, rel)
        if verdict is not None:
            return verdict
    return None


class IgnoreRules:
    """
    Ignore matching the way git-aware walkers do it.

    Sources are grouped by kind and checked in order: *overrides*, then
    ``.ignore`` files, then ``.gitignore`` files, then the repository's
    ``.git/info/exclude``, then the global excludes file. Within a kind the
    deepest directory decides. The three git sources only count inside a
    repository, and ``.gitignore`` files above the nearest repository root
    are dropped.
    """

    def __init__(
        self,
        enabled: bool = True,
        layers: Optional[List[Layer]] = None,
        overrides: Optional[Layer] = None,
        git_layers: Optional[List[Layer]] = None,
        exclude: Optional[Layer] = None,
        global_spec: Optional["pathspec.PathSpec"] = None,
        in_git: bool = False,
        global_base: Optional[str] = None,
    ) -> None:
        self.enabled = enabled
        self.layers = layers or []
        self.overrides = overrides
        self.git_layers = git_layers or []
        self.exclude = exclude
        self.global_spec = global_spec
        self.in_git = in_git
        # root of the nearest repository, global excludes match against it
        self.global_base = global_base

    @classmethod
    def for_root(
        cls,
        start: PathLike,
        enabled: bool = True,
        extra_spec: Optional["pathspec.PathSpec"] = None,
    ) -> "IgnoreRules":
        start = os.fspath(start)
        overrides = (start, extra_spec) if extra_spec is not None else None
        if not enabled:
            return cls(enabled=False, overrides=overrides)

        rules = cls(
            overrides=overrides,
            global_spec=_read_spec(global_excludes_path()),
            in_git=find_repo_root(start) is not None,
        )
        top = os.path.abspath(start)
        if not os.path.isdir(top):
            top = os.path.dirname(top)
        ancestors: List[str] = []
        cur = os.path.dirname(top)
        while cur != top:
            ancestors.append(cur)
            top, cur = cur, os.path.dirname(cur)
        for ancestor in reversed(ancestors):
            rules = rules.child(ancestor)
        return rules

    def child(self, dir_path: str) -> "IgnoreRules":
        """Rules for the entries of *dir_path*, including its own ignore files."""
        if not self.enabled:
            return self
        layers = list(self.layers)
        spec = _read_spec(os.path.join(dir_path, ".ignore"))
        if spec is not None:
            layers.append((dir_path, spec))

        if _has_git(dir_path):
            git_layers: List[Layer] = []
            exclude = _read_spec(os.path.join(dir_path, ".git", "info", "exclude"))
            exclude_layer = (dir_path, exclude) if exclude is not None else None
            global_base, in_git = dir_path, True
        else:
            git_layers = list(self.git_layers)
            exclude_layer = self.exclude
            global_base, in_git = self.global_base, self.in_git
        spec = _read_spec(os.path.join(dir_path, ".gitignore"))
        if spec is not None:
            git_layers.append((dir_path, spec))

        return IgnoreRules(
            True, layers, self.overrides, git_layers, exclude_layer,
            self.global_spec, in_git, global_base,
        )

    def is_ignored(self, path: str, is_dir: bool) -> bool:
        if self.overrides is not None:
            verdict = _first_verdict([self.overrides], path, is_dir)
            if verdict is not None:
                return verdict
        if not self.enabled:
            return False

        groups = [self.layers]
        if self.in_git:
            groups.append(self.git_layers)
            if self.exclude is not None:
                groups.append([self.exclude])
            if self.global_spec is not None and self.global_base is not None:
                groups.append([(self.global_base, self.global_spec)])
        for group in groups:
            verdict = _first_verdict(group, path, is_dir)
            if verdict is not None:
                return verdict
        return False


# File discovery
def display_path(path: PathLike) -> str:
    """Printable path; bytes that are not UTF-8 become U+FFFD."""
    return os.fsencode(path).decode("utf-8", "replace")


def _list_dir(dir_path: str, verbose: bool) -> Optional[List["os.DirEntry[str]"]]:
    try:
        with os.scandir(dir_path) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as e:
        if verbose:
            _warn(f"Could not read directory {display_path(dir_path)}: {e}")
        return None


def walk(
    start: PathLike,
    rules: Optional[IgnoreRules] = None,
    verbose: bool = False,
) -> Iterator[Tuple[str, bool]]:
    """
    Yield ``(path, is_dir)`` depth-first, root first, siblings in name order.

    Hidden names are skipped, symlinks are not followed. Failing to list the
    root raises :class:`InvalidRootError`; any deeper failure is skipped.
    """
    start = os.fspath(start)
    if rules is None:
        rules = IgnoreRules.for_root(start)
    if not os.path.lexists(start):
        raise InvalidRootError(f"Start path '{start}' does not exist")

    root_is_dir = os.path.isdir(start)
    yield start, root_is_dir
    if not root_is_dir:
        return
    try:
        with os.scandir(start) as it:
            children = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise InvalidRootError(f"Could not scan directory '{start}': {e}")

    stack = [(iter(children), rules.child(start))]
    while stack:
        entries, dir_rules = stack[-1]
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            continue
        if entry.name.startswith("."):
            continue
        path = entry.path
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            if verbose:
                _warn(f"Could not stat {display_path(path)}: {e}")
            continue
        if dir_rules.is_ignored(path, is_dir):
            continue
        yield path, is_dir
        if is_dir:
            sub = _list_dir(path, verbose)
            if sub is not None:
                stack.append((iter(sub), dir_rules.child(path)))


# Per-file helpers
def is_binary(path: PathLike) -> bool:
    """A file is binary when its first 1024 bytes contain a NUL."""
    with open(path, "rb") as fh:
        return b"\0" in fh.read(BINARY_SNIFF_BYTES)


def matches_extension(path: PathLike, filters: Iterable[str]) -> bool:
    filters = set(filters)
    if not filters:
        return True
    name = os.path.basename(os.fspath(path))
    _, ext = os.path.splitext(name)
    if not ext:
        return False
    return ext[1:] in filters


def read_text(path: PathLike) -> Optional[str]:
    try:
        with open(path, "rb") as fh:
            return fh.read().decode("utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _content_for(path: str) -> Optional[str]:
    try:
        if is_binary(path):
            return None
    except OSError:
        return None
    return read_text(path)


# Collector
def run(options: TraversalOptions) -> Report:
    """Walk ``options.start`` once and collect every visited path."""
    rules = IgnoreRules.for_root(
        options.start,
        enabled=options.respect_ignore,
        extra_spec=options.extra_spec,
    )
    report = Report()
    for path, is_dir in walk(options.start, rules, verbose=options.verbose):
        shown = display_path(path)
        if options.verbose:
            say(f"[listclip] {shown}")

        if is_dir:
            report.entries.append(Entry(shown, EntryKind.DIRECTORY))
            continue
        if not os.path.isfile(path):
            report.entries.append(Entry(shown, EntryKind.OTHER))
            continue

        entry = Entry(shown, EntryKind.FILE)
        if matches_extension(path, options.extensions):
            entry.matched = True
            if options.include_content:
                entry.content = _content_for(path)
        report.entries.append(entry)
    return report


def format_report(report: Report, fmt: OutputFormat = OutputFormat.PLAIN) -> str:
    if fmt is OutputFormat.JSON:
        records = [{"path": e.path, "content": e.content} for e in report.entries]
        return json.dumps(records, indent=2, ensure_ascii=False)

    listing = "".join(f"{e.path}\n" for e in report.entries)
    return f"{LIST_HEADER}{listing}\n{report.content_blocks()}"

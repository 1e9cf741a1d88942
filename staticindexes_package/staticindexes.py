#!/usr/bin/env python3
"""
Write a static index.html into directories so they can be served as a plain
file browser without server-side directory listings.

Features
- Lists every entry of a directory with an icon, a link and its last-modified
  time, sorted by name (files and directories interleaved)
- Leaves out hidden dotfiles unless asked for
- Splices an optional per-directory HEADER.html into <head> and README.html
  after the listing (or a rendered README.md with --markdown-readme)
- Never overwrites an index.html that lacks the generated-by marker, so
  hand-written pages survive
- Walks the whole tree depth-first with -r

Usage
    python -m staticindexes_package.staticindexes -r path/to/dir

Notes
- Page output only depends on the directory contents, so re-running on an
  unchanged directory produces byte-identical pages.
- -h means "include hidden entries", use --help for help.
"""

from __future__ import annotations
import argparse
import html
import logging
import os
import pathlib
import stat
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from importlib import resources
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

import markdown  # Python-Markdown

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"
# Exact match only, never a prefix.
LEGACY_INDEX_TOKEN = "index.htm;"
HEADER_FILENAME = "HEADER.html"
README_FILENAME = "README.html"
README_MARKDOWN_FILENAME = "README.md"
HEAD_ASSET = "head.header"
BODY_ASSET = "body.footer"

MAGIC = "<!-- generated by static-indexes -->"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"
FOLDER_ICON = "folder-open"
UP_ICON = "up-arrow"

ICONS: Mapping[str, str] = MappingProxyType({
    "default": "file-alt",
    ".epub": "book",
    ".jpeg": "file-image",
    ".jpg": "file-image",
    ".gif": "file-image",
    ".tiff": "file-image",
    ".pdf": "file-pdf",
    ".mov": "file-movie",
    ".avi": "file-movie",
    ".zip": "file-archive",
    ".rar": "file-archive",
    ".tar": "file-archive",
    ".tgz": "file-archive",
})


class IndexGenerationError(Exception):
    """A directory could not be indexed. Aborts the whole run."""

    reason = "index generation failed"

    def __init__(self, path: pathlib.Path, detail: object = None):
        self.path = path
        self.detail = detail
        message = f"{path}: {self.reason}"
        if detail is not None:
            message += f": {detail}"
        super().__init__(message)


class DirectoryNotFoundError(IndexGenerationError):
    reason = "no such directory"


class NotADirectoryIndexError(IndexGenerationError):
    reason = "not a dir"


class DirectoryUnreadableError(IndexGenerationError):
    reason = "read dir"


class IndexWriteError(IndexGenerationError):
    reason = "write index"


@dataclass(frozen=True)
class Entry:
    name: str
    is_dir: bool
    modified_at: datetime  # aware, local zone

    @classmethod
    def from_dir_entry(cls, d: os.DirEntry) -> Entry:
        # lstat semantics: a symlink to a directory is listed as a file
        st = d.stat(follow_symlinks=False)
        when = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).astimezone()
        return cls(d.name, d.is_dir(follow_symlinks=False), when)


@dataclass
class IndexOptions:
    recursive: bool = False
    include_hidden: bool = False
    markdown_readme: bool = False


@dataclass(frozen=True)
class Assets:
    head: bytes
    body: bytes

    @classmethod
    def load(cls, directory: pathlib.Path | None = None) -> Assets:
        """Read the head/body templates from `directory`, or the bundled copies."""
        if directory is None:
            base = resources.files("staticindexes_package") / "assets"
        else:
            base = pathlib.Path(directory)
        return cls(head=(base / HEAD_ASSET).read_bytes(), body=(base / BODY_ASSET).read_bytes())


@dataclass
class RunReport:
    written: List[pathlib.Path] = field(default_factory=list)
    skipped: List[pathlib.Path] = field(default_factory=list)


def parse_listing(entries: Iterable[Entry], include_hidden: bool) -> Tuple[List[str], Dict[str, Entry]]:
    """Filter a raw listing and return (sorted names, name -> entry)."""
    by_name: Dict[str, Entry] = {}
    for entry in entries:
        if entry.name.startswith(".") and not include_hidden:
            continue
        if entry.name in (INDEX_FILENAME, LEGACY_INDEX_TOKEN):
            continue
        by_name[entry.name] = entry
    return sorted(by_name), by_name


def resolve_icon(entry: Entry) -> Tuple[str, str]:
    """Return (display name, icon). Directories get a trailing slash."""
    if entry.is_dir:
        return entry.name + "/", FOLDER_ICON
    lc = entry.name.lower()
    icon = ICONS.get(lc)
    if icon is None:
        icon = ICONS.get(os.path.splitext(lc)[1], ICONS["default"])
    return entry.name, icon


def render_row(entry: Entry) -> str:
    name, icon = resolve_icon(entry)
    font_awesome = f'\t<i class="fas fa-{icon}"></i>'
    link = f'<a href="{name}">{html.escape(name)}</a>'
    when = entry.modified_at.strftime(TIMESTAMP_FORMAT)
    return f"""
<tr>
<td>{font_awesome}</td>
<td>{link}</td>
<td>{when}</td>
</tr>"""


def generate_table(names: List[str], by_name: Mapping[str, Entry]) -> str:
    rows: List[str] = []
    for name in names:
        entry = by_name.get(name)
        if entry is None:
            continue
        rows.append(render_row(entry))

    return f"""<table class="sortable">
\t<thead>
\t\t<tr>
\t\t\t<th class="no-sort"></th>
\t\t\t<th>Name</th>
\t\t\t<th>Date</th>
\t\t</tr>
\t</thead>
\t<tbody>
{''.join(rows)}
\t\t<tr>
\t\t\t<td></td>
\t\t</tr>
\t</tbody>
</table>"""


def safe_to_replace(path: pathlib.Path) -> bool:
    """An index may be overwritten if it is missing or carries the marker."""
    try:
        data = pathlib.Path(path).read_bytes()
    except OSError:
        return True
    return MAGIC.encode("utf-8") in data


def read_optional(path: pathlib.Path) -> bytes | None:
    try:
        return path.read_bytes()
    except OSError:
        return None


def render_markdown_text(md_text: str) -> str:
    return markdown.markdown(md_text, extensions=["fenced_code", "tables", "toc"])  # type: ignore


def read_readme(directory: pathlib.Path, markdown_readme: bool = False) -> bytes | None:
    readme = read_optional(directory / README_FILENAME)
    if readme is None and markdown_readme:
        md = read_optional(directory / README_MARKDOWN_FILENAME)
        if md is not None:
            readme = render_markdown_text(md.decode("utf-8", errors="replace")).encode("utf-8")
    return readme


def build_page(
    entries: Iterable[Entry],
    assets: Assets,
    include_hidden: bool = False,
    header: bytes | None = None,
    readme: bytes | None = None,
) -> bytes:
    names, by_name = parse_listing(entries, include_hidden)
    table = generate_table(names, by_name)

    parts: List[bytes] = [b"<html>", MAGIC.encode("utf-8"), b"<head>", assets.head]
    if header is not None:
        parts.append(header)
    parts += [b"</head>", b"<body>", assets.body]
    parts.append(f'<div><a href=".."><i class="fas fa-{UP_ICON}"></i> up</a></div>'.encode("utf-8"))
    # surrogateescape round-trips file names that are not valid UTF-8
    parts.append(table.encode("utf-8", errors="surrogateescape"))
    if readme is not None:
        parts.append(readme)
    parts += [b"</body>", b"</html>"]
    return b"".join(parts)


def write_page(path: pathlib.Path, page: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
    with os.fdopen(fd, "wb") as f:
        f.write(page)


def generate_index(
    directory: pathlib.Path,
    entries: List[Entry],
    options: IndexOptions,
    assets: Assets,
    report: RunReport,
) -> bool:
    """Write `directory`/index.html unless a hand-written page is in the way."""
    fn = directory / INDEX_FILENAME
    logger.info(f"Generating index: {fn}")
    if not safe_to_replace(fn):
        logger.warning(f"{fn}: not safe to replace")
        report.skipped.append(fn)
        return False

    page = build_page(
        entries,
        assets,
        include_hidden=options.include_hidden,
        header=read_optional(directory / HEADER_FILENAME),
        readme=read_readme(directory, options.markdown_readme),
    )
    try:
        write_page(fn, page)
    except OSError as e:
        raise IndexWriteError(fn, e) from e
    report.written.append(fn)
    return True


def read_directory(directory: pathlib.Path) -> List[Entry]:
    try:
        st = directory.stat()
    except FileNotFoundError as e:
        raise DirectoryNotFoundError(directory, e) from e
    except NotADirectoryError as e:
        # a path component is a regular file
        raise NotADirectoryIndexError(directory, e) from e
    except OSError as e:
        raise DirectoryUnreadableError(directory, e) from e
    if not stat.S_ISDIR(st.st_mode):
        raise NotADirectoryIndexError(directory)

    entries: List[Entry] = []
    try:
        with os.scandir(directory) as it:
            for d in it:
                try:
                    entries.append(Entry.from_dir_entry(d))
                except FileNotFoundError:
                    logger.debug(f"{directory / d.name}: vanished while listing")
    except OSError as e:
        raise DirectoryUnreadableError(directory, e) from e
    return entries


def process(
    directory: pathlib.Path | str,
    options: IndexOptions,
    assets: Assets,
    report: RunReport,
    top: bool = True,
) -> None:
    """Index one directory and, in recursive mode, its subdirectories.

    Any IndexGenerationError propagates and ends the run. `top` marks the root
    call and does not change behavior.
    """
    directory = pathlib.Path(directory)
    entries = read_directory(directory)
    generate_index(directory, entries, options, assets, report)
    if not options.recursive:
        return

    for entry in sorted(entries, key=lambda e: e.name):
        if not entry.is_dir:
            continue
        # Hidden directories are listed with -h but not descended into.
        if entry.name.startswith(".") and options.include_hidden:
            logger.debug(f"{directory / entry.name}: hidden, not descending")
            continue
        process(directory / entry.name, options, assets, report, top=False)


def process_all(dirs: Iterable[pathlib.Path | str], options: IndexOptions, assets: Assets) -> RunReport:
    report = RunReport()
    for dest in dirs:
        process(dest, options, assets, report, top=True)
    return report


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Write static index.html listings into directories", add_help=False)
    ap.add_argument("dirs", nargs="+", metavar="DIR", help="Directory to index")
    ap.add_argument("--help", action="help", help="Show this help message and exit")
    ap.add_argument("-r", "--recursive", action="store_true", help="Descend into subdirectories")
    ap.add_argument("-h", "--hidden", action="store_true", help="Include hidden dotfiles")
    ap.add_argument("-m", "--markdown-readme", action="store_true", help="Render README.md after the listing when there is no README.html")
    ap.add_argument("--assets-dir", help="Directory with head.header and body.footer (default: bundled assets)")
    verbosity = ap.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    args = ap.parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    options = IndexOptions(
        recursive=args.recursive,
        include_hidden=args.hidden,
        markdown_readme=args.markdown_readme,
    )
    try:
        assets = Assets.load(pathlib.Path(args.assets_dir) if args.assets_dir else None)
    except OSError as e:
        logger.error(f"Failed to load assets: {e}")
        return 1

    try:
        report = process_all(args.dirs, options, assets)
    except IndexGenerationError as e:
        logger.error(e)
        return 1

    if not args.quiet:
        print(f"✓ Wrote {len(report.written)} index pages ({len(report.skipped)} skipped)", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

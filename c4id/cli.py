"""The ``c4`` command: print C4 IDs for files, folders and piped data."""

from __future__ import annotations

import argparse
import os
import platform
import stat
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO, List, Optional, Sequence, TextIO, Union

from .core import ID, NIL_ID, Encoder
from .slices import Slice

VERSION_NUMBER = "0.8"
_CHUNK_SIZE = 1 << 16


class _WalkFailure(OSError):
    """A file or folder could not be examined."""


@dataclass
class Options:
    """Settings chosen on the command line."""

    version: bool = False
    recursive: bool = False
    absolute: bool = False
    links: bool = False
    depth: int = 0
    metadata: bool = False
    formatting: str = "id"


@dataclass
class _Item:
    folder: bool
    is_link: bool
    socket: bool
    size: int
    modified: datetime
    link_target: str = ""
    c4id: str = ""


def version_string() -> str:
    """The version line, naming the operating system."""
    return f"c4 version {VERSION_NUMBER} ({platform.system().lower()})"


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the ``c4`` command."""
    description = (
        version_string()
        + "\n\n  c4 generates C4 IDs for all files and folders specified.\n"
        + "  If no file is given c4 will read piped data."
    )
    parser = argparse.ArgumentParser(
        prog="c4",
        usage="c4 [flags] [file]",
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--version", action="store_true",
                        help="Show version information.")
    parser.add_argument("-R", "--recursive", action="store_true",
                        help="Recursively identify all files for the given path.")
    parser.add_argument("-a", "--absolute", action="store_true",
                        help="Output absolute paths, instead of relative paths.")
    parser.add_argument("-L", "--links", action="store_true",
                        help="All symbolic links are followed.")
    parser.add_argument("-d", "--depth", type=int, default=0,
                        help="Only output ids for files and folders 'depth' directories deep.")
    parser.add_argument("-m", "--metadata", action="store_true",
                        help='Include filesystem metadata. "path" is always included unless '
                             "data is piped, or only a single file is specified.")
    parser.add_argument("-f", "--formatting", default="id",
                        help='Output formatting options. "id": c4id oriented. '
                             '"path": path oriented.')
    parser.add_argument("files", nargs="*", help="Files and folders to identify.")
    return parser


def encode(stream: Union[BinaryIO, TextIO]) -> ID:
    """The ID of everything read from a stream."""
    encoder = Encoder()
    while True:
        chunk = stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        encoder.write(chunk)
    return encoder.id()


def file_id(path: Union[str, os.PathLike]) -> ID:
    """The ID of a file's contents."""
    with open(path, "rb") as handle:
        return encode(handle)


def _relative(path: str, root: str) -> str:
    if not path:
        return ""
    try:
        return os.path.relpath(path, root)
    except ValueError:
        return ""


def _resolve(path: str) -> str:
    try:
        return os.path.realpath(path, strict=True)
    except OSError:
        return ""


class Walker:
    """Identify files and folders, printing those selected by the options."""

    def __init__(self, options: Options, out: Optional[TextIO] = None) -> None:
        self.options = options
        self.out = out if out is not None else sys.stdout

    def _item(self, path: str) -> _Item:
        try:
            info = os.lstat(path)
        except OSError as exc:
            raise _WalkFailure(f'Unable to get status for "{path}": {exc}') from exc
        return _Item(
            folder=stat.S_ISDIR(info.st_mode),
            is_link=stat.S_ISLNK(info.st_mode),
            socket=stat.S_ISSOCK(info.st_mode),
            size=info.st_size,
            modified=datetime.fromtimestamp(info.st_mtime, timezone.utc),
        )

    def walk(self, depth: int, filename: Union[str, os.PathLike]) -> ID:
        """Identify ``filename``; print it if ``depth`` >= 0 or recursing."""
        filename = os.fspath(filename)
        path = os.path.abspath(filename)
        item = self._item(path)
        if item.socket:
            id_ = NIL_ID
        elif item.is_link and not self.options.links:
            item.link_target = _resolve(filename)
            id_ = NIL_ID
        elif item.is_link:
            try:
                target = os.path.realpath(filename, strict=True)
            except OSError as exc:
                print(f"Unable to follow link {filename}. {exc}", file=sys.stderr)
                item.link_target = ""
                id_ = NIL_ID
            else:
                item.link_target = target
                id_ = Slice([self.walk(depth - 1, target)]).id()
        elif item.folder:
            try:
                names = sorted(os.listdir(path))
            except OSError as exc:
                raise _WalkFailure(f"Unable to read directory: {exc}") from exc
            children = Slice(self.walk(depth - 1, os.path.join(filename, name)) for name in names)
            id_ = children.id()
        else:
            try:
                id_ = file_id(path)
            except OSError as exc:
                raise _WalkFailure(f"Unable to identify {path}. {exc}") from exc
        item.c4id = str(id_)
        if depth >= 0 or self.options.recursive:
            self.output(path, item)
        return id_

    def output(self, path: str, item: _Item) -> None:
        """Print one identified item in the chosen format."""
        root = os.path.abspath(".")
        base = os.path.basename(path) or path
        shown = path if self.options.absolute else _relative(path, root)
        if self.options.metadata:
            self._metadata_output(item, shown, base, root)
        elif self.options.formatting == "path":
            print(f"{shown}:  {item.c4id}", file=self.out)
        else:
            print(f"{item.c4id}:  {shown}", file=self.out)

    def _metadata_output(self, item: _Item, path: str, base: str, root: str) -> None:
        lines: List[str] = []
        if self.options.formatting == "path":
            lines += [f'"{path}":', f"  c4id: {item.c4id}"]
        else:
            lines += [f"{item.c4id}:", f'  path: "{path}"']
        lines.append(f'  name:  "{base}"')
        lines.append(f"  folder:  {'true' if item.folder else 'false'}")
        if item.is_link:
            target = item.link_target
            if not self.options.absolute:
                target = _relative(target, root)
            lines.append(f'  link:  "{target}"')
        else:
            lines.append("  link:  false")
        lines.append(f"  bytes:  {item.size}")
        print("\n".join(lines), file=self.out)


def _print_id(id_: ID) -> None:
    out = sys.stdout
    if out.isatty():
        out.write(f"{id_}\n")
    else:
        out.write(str(id_))
    out.flush()


def _identify_pipe(parser: argparse.ArgumentParser) -> None:
    stdin = sys.stdin
    if stdin is None or stdin.isatty():
        parser.print_help(sys.stderr)
        return
    _print_id(encode(getattr(stdin, "buffer", stdin)))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the ``c4`` command and return its exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    options = Options(
        version=args.version,
        recursive=args.recursive,
        absolute=args.absolute,
        links=args.links,
        depth=args.depth,
        metadata=args.metadata,
        formatting=args.formatting,
    )
    if options.version:
        print(version_string())
        return 0
    files = args.files
    try:
        if not files:
            _identify_pipe(parser)
        elif len(files) == 1 and not (options.recursive or options.metadata) and options.depth == 0:
            _print_id(Walker(options).walk(-1, os.path.abspath(files[0])))
        else:
            walker = Walker(options)
            depth = max(options.depth, 0)
            for name in files:
                walker.walk(depth, os.path.abspath(name))
    except OSError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 0
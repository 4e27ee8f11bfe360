"""Shared fixtures: a directory tree to serve, a capturing logger and a
request context factory."""

import io
import os
import sys
from pathlib import Path
from typing import Callable

import pytest

# Makes `import dirserve` work without installing the package
SOURCES = str(Path(__file__).resolve().parent.parent / "src" / "py")
if SOURCES not in sys.path:
	sys.path.insert(0, SOURCES)

from dirserve.http.model import HTTPContext, HTTPRequest  # NOQA: E402
from dirserve.templates import Templates  # NOQA: E402
from dirserve.utils.logging import LogEntry, Logger, LogLevel  # NOQA: E402

# A fixed modification time: 2023-11-14 22:13:20 UTC
MTIME: int = 1_700_000_000


class Logs:
	"""Collects the entries sent to a logger."""

	def __init__(self) -> None:
		self.entries: list[LogEntry] = []
		self.logger: Logger = Logger("test", level=LogLevel.Debug, sink=io.StringIO())
		self.logger.listeners.append(self.entries.append)

	def warnings(self) -> list[LogEntry]:
		return [_ for _ in self.entries if _.level is LogLevel.Warning]

	def messages(self, level: LogLevel = LogLevel.Warning) -> list[str]:
		return [_.message or "" for _ in self.entries if _.level is level]


def touch(path: Path, content: bytes = b"", mtime: int = MTIME) -> Path:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_bytes(content)
	os.utime(path, (mtime, mtime))
	return path


@pytest.fixture
def logs() -> Logs:
	return Logs()


@pytest.fixture
def tree(tmp_path: Path) -> Path:
	"""A served root with files, a subdirectory and a sibling directory
	whose name shares the root's prefix."""
	root = tmp_path / "root"
	touch(root / "b.txt", b"0123456789")
	touch(root / "a.txt", b"01234")
	touch(root / "Readme.md", b"# Readme")
	touch(root / "data.unknownext", b"\x00\x01")
	touch(root / "sub" / "nested.txt", b"nested")
	touch(root / "site" / "index.html", b"<h1>html</h1>")
	touch(root / "site" / "index.htm", b"<h1>htm</h1>")
	touch(root / "legacy" / "index.htm", b"<h1>legacy</h1>")
	touch(tmp_path / "root-evil" / "secret.txt", b"secret")
	touch(tmp_path / "outside.txt", b"outside")
	return root.resolve()


@pytest.fixture
def makeContext() -> Callable[..., HTTPContext]:
	templates = Templates()

	def make(
		method: str = "GET",
		path: str = "",
		headers: dict[str, str] | None = None,
		*,
		uri: str | None = None,
		applicationPath: str = "",
	) -> HTTPContext:
		request = HTTPRequest(
			method,
			uri if uri is not None else f"/files/{path}",
			headers=headers,
			applicationPath=applicationPath,
		)
		return HTTPContext(request, {"path": path}, renderer=templates)

	return make


# EOF

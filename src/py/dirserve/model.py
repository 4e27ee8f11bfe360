import os
from enum import Enum
from pathlib import Path
from stat import S_ISDIR, S_ISREG
from typing import Iterable, NamedTuple, TypeAlias

from . import config
from .utils.format import numberPattern, printable

# -----------------------------------------------------------------------------
#
# CONFIGURATION
#
# -----------------------------------------------------------------------------


class ServerConfig(NamedTuple):
	"""The read-only configuration of a directory handler."""

	urlPrefix: str
	rootDirectory: Path
	timestampFormat: str = config.TIMESTAMP_FORMAT
	sizeFormat: str = config.SIZE_FORMAT
	listingTemplateName: str | None = None

	@staticmethod
	def Make(
		urlPrefix: str,
		rootDirectory: str | Path,
		*,
		timestampFormat: str = config.TIMESTAMP_FORMAT,
		sizeFormat: str = config.SIZE_FORMAT,
		listingTemplateName: str | None = None,
	) -> "ServerConfig":
		"""Creates a configuration with a canonical, absolute root directory
		and a prefix that is either empty or starts with a single slash. Raises
		`ValueError` when `sizeFormat` is not a number pattern."""
		numberPattern(sizeFormat)
		prefix: str = urlPrefix.strip("/")
		return ServerConfig(
			urlPrefix=f"/{prefix}" if prefix else "",
			rootDirectory=Path(rootDirectory).resolve(),
			timestampFormat=timestampFormat,
			sizeFormat=sizeFormat,
			listingTemplateName=listingTemplateName or None,
		)


# -----------------------------------------------------------------------------
#
# RESOLVED TARGETS
#
# -----------------------------------------------------------------------------


class RejectReason(Enum):
	Escape = "escape"
	NotFound = "notfound"


class File(NamedTuple):
	path: Path


class Directory(NamedTuple):
	path: Path


class Rejected(NamedTuple):
	path: Path | None
	reason: RejectReason


ResolvedTarget: TypeAlias = File | Directory | Rejected

# -----------------------------------------------------------------------------
#
# ENTRIES
#
# -----------------------------------------------------------------------------


class DirEntry(NamedTuple):
	"""One row of a directory listing."""

	url: str
	name: str
	path: Path
	size: int
	lastModified: float
	isFile: bool
	isDirectory: bool

	@property
	def length(self) -> int:
		return self.size

	@property
	def label(self) -> str:
		return printable(self.name)

	@staticmethod
	def FromStat(url: str, name: str, path: Path, stat: os.stat_result) -> "DirEntry":
		mode: int = stat.st_mode
		return DirEntry(
			url=url,
			name=name,
			path=path,
			size=stat.st_size,
			lastModified=stat.st_mtime,
			isFile=S_ISREG(mode),
			isDirectory=S_ISDIR(mode),
		)


def entryOrder(entry: DirEntry) -> tuple[str, str]:
	"""Sort key for entries: case-insensitive name, then the name itself so
	that names differing only by case have a fixed order."""
	return (entry.name.casefold(), entry.name)


class ListingSummary(NamedTuple):
	files: int
	dirs: int
	diskUsage: int

	@staticmethod
	def FromEntries(entries: Iterable[DirEntry]) -> "ListingSummary":
		files: int = 0
		dirs: int = 0
		usage: int = 0
		for entry in entries:
			if entry.isFile:
				files += 1
				usage += entry.size
			elif entry.isDirectory and ".." not in entry.name:
				dirs += 1
		return ListingSummary(files, dirs, usage)


# -----------------------------------------------------------------------------
#
# VALIDATION
#
# -----------------------------------------------------------------------------


class ValidationState(Enum):
	Continue = 0
	NotModified = 1
	Failed = 2


class Validation(NamedTuple):
	"""Result of computing the validation headers of a resource."""

	state: ValidationState
	reason: str | None = None
	error: BaseException | None = None

	@staticmethod
	def Failed(reason: str, error: BaseException | None = None) -> "Validation":
		return Validation(ValidationState.Failed, reason, error)

	@property
	def isNotModified(self) -> bool:
		return self.state is ValidationState.NotModified

	@property
	def isFailed(self) -> bool:
		return self.state is ValidationState.Failed


CONTINUE: Validation = Validation(ValidationState.Continue)
NOT_MODIFIED: Validation = Validation(ValidationState.NotModified)

# EOF

from pathlib import Path
from stat import S_ISDIR, S_ISREG

from . import config
from .model import Directory, File, RejectReason, Rejected, ResolvedTarget
from .utils.logging import LOGGER, Logger


def normalize(path: str) -> str:
	"""Strips a single leading and a single trailing slash."""
	if path.startswith("/"):
		path = path[1:]
	if path.endswith("/"):
		path = path[:-1]
	return path


def isInside(path: Path, root: Path) -> bool:
	"""Tells if `path` is `root` or below it, comparing path components so that
	`/srv/root-evil` is not taken as being inside `/srv/root`."""
	parts = root.parts
	return path.parts[: len(parts)] == parts


class PathResolver:
	"""Maps request paths to files and directories confined to a root."""

	def __init__(
		self,
		*,
		welcomeFiles: tuple[str, ...] = config.WELCOME_FILES,
		logger: Logger = LOGGER,
	) -> None:
		self.welcomeFiles: tuple[str, ...] = welcomeFiles
		self.logger: Logger = logger

	def resolve(
		self, requestPath: str, root: Path, *, uri: str | None = None
	) -> ResolvedTarget:
		"""Resolves the `requestPath` against the canonical `root`. Nothing
		outside of the root is ever stat'ed."""
		path: str = normalize(requestPath)
		uri = requestPath if uri is None else uri
		if not path:
			return Directory(root)
		try:
			resolved: Path = root.joinpath(path).resolve()
		except (OSError, ValueError, RuntimeError) as e:
			self.logger.warning(
				"Could not resolve request path", Path=path, URI=uri, Error=str(e)
			)
			return Rejected(None, RejectReason.NotFound)
		if not isInside(resolved, root):
			self.logger.warning(
				"Request for path outside of root",
				Path=str(resolved),
				Root=str(root),
				URI=uri,
			)
			return Rejected(resolved, RejectReason.Escape)
		try:
			mode: int = resolved.stat().st_mode
		except (OSError, ValueError):
			self.logger.warning("Path not found", Path=str(resolved), URI=uri)
			return Rejected(resolved, RejectReason.NotFound)
		if S_ISREG(mode):
			return File(resolved)
		elif S_ISDIR(mode):
			return Directory(resolved)
		else:
			self.logger.warning("Path is not a regular file", Path=str(resolved), URI=uri)
			return Rejected(resolved, RejectReason.NotFound)

	def welcomeFile(self, directory: Path, root: Path) -> Path | None:
		"""Returns the first welcome file that is a regular file directly
		within `directory`, and that resolves within `root`."""
		for name in self.welcomeFiles:
			candidate: Path = directory / name
			try:
				if not candidate.is_file():
					continue
				resolved: Path = candidate.resolve()
			except (OSError, ValueError):
				continue
			if isInside(resolved, root):
				return resolved
			else:
				self.logger.warning(
					"Welcome file outside of root", Path=str(resolved), Root=str(root)
				)
		return None


RESOLVER: PathResolver = PathResolver()


def resolve(requestPath: str, root: Path) -> ResolvedTarget:
	return RESOLVER.resolve(requestPath, root)


# EOF

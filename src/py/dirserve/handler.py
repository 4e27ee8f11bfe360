import re
from enum import Enum
from pathlib import Path

from .api import RouteContext
from .listing import EntryLister, ListingRenderer, directoryUrl
from .model import DirEntry, Directory, File, Rejected, ServerConfig
from .resolver import PathResolver, normalize
from .streamer import ResourceStreamer
from .utils.format import numberPattern
from .utils.logging import LOGGER, Logger

PATH_PARAMETER: str = "path"


class HandlerState(Enum):
	"""The branch a request took once its path was resolved."""

	Rejected = 1
	ServingFile = 2
	ResolvingWelcome = 3
	ListingDirectory = 4


class DirectoryResourceHandler:
	"""Serves a directory tree mounted at `urlPath`.

	Unlike a plain file handler, it:

	- serves a welcome file (`index.html`, then `index.htm`) for directories,
	- otherwise sends a directory listing, generated or rendered by template,
	- answers HEAD requests with the validation headers only.

	The configuration is replaced, never mutated, by the setters, which are
	meant to be called before the handler serves requests. Handling a
	request writes nothing but the request's own context, so one handler can
	serve concurrent requests."""

	def __init__(
		self,
		urlPath: str,
		directory: str | Path,
		*,
		resolver: PathResolver | None = None,
		lister: EntryLister | None = None,
		renderer: ListingRenderer | None = None,
		streamer: ResourceStreamer | None = None,
		logger: Logger = LOGGER,
	) -> None:
		self.config: ServerConfig = ServerConfig.Make(urlPath, directory)
		self.logger: Logger = logger
		self.resolver: PathResolver = resolver or PathResolver(logger=logger)
		self.lister: EntryLister = lister or EntryLister(logger=logger)
		self.renderer: ListingRenderer = renderer or ListingRenderer()
		self.streamer: ResourceStreamer = streamer or ResourceStreamer(logger=logger)
		prefix: str = normalize(self.config.urlPrefix)
		self.uriPattern: str = (
			f"/{prefix}/?{{{PATH_PARAMETER}: .*}}"
			if prefix
			else f"/{{{PATH_PARAMETER}: .*}}"
		)
		self.uriRegExp: re.Pattern[str] = re.compile(
			f"^/{re.escape(prefix)}(/(?P<{PATH_PARAMETER}>.*))?$"
			if prefix
			else f"^/(?P<{PATH_PARAMETER}>.*)$"
		)

	# =========================================================================
	# CONFIGURATION
	# =========================================================================

	@property
	def urlPath(self) -> str:
		return self.config.urlPrefix

	@property
	def directory(self) -> Path:
		return self.config.rootDirectory

	@property
	def timestampPattern(self) -> str:
		return self.config.timestampFormat

	def setTimestampPattern(self, pattern: str) -> "DirectoryResourceHandler":
		self.config = self.config._replace(timestampFormat=pattern)
		return self

	@property
	def fileSizePattern(self) -> str:
		return self.config.sizeFormat

	def setFileSizePattern(self, pattern: str) -> "DirectoryResourceHandler":
		# Raises `ValueError` for a pattern without digits
		numberPattern(pattern)
		self.config = self.config._replace(sizeFormat=pattern)
		return self

	@property
	def directoryTemplate(self) -> str | None:
		return self.config.listingTemplateName

	def setDirectoryTemplate(self, template: str | None) -> "DirectoryResourceHandler":
		self.config = self.config._replace(listingTemplateName=template or None)
		return self

	# =========================================================================
	# HANDLING
	# =========================================================================

	def match(self, requestPath: str) -> str | None:
		"""Returns the `path` parameter when `requestPath` is under the mount
		path, `None` otherwise."""
		m = self.uriRegExp.match(requestPath)
		return (m.group(PATH_PARAMETER) or "") if m else None

	def handle(self, context: RouteContext) -> HandlerState:
		"""Handles the request and signals the next handler. Returns the
		state in which the request was handled."""
		resourcePath: str = normalize(context.parameter(PATH_PARAMETER) or "")
		self.logger.debug("Request resource", Path=resourcePath)
		state: HandlerState = self.handleResource(context, resourcePath)
		self.logger.debug("Request handled", Path=resourcePath, State=state.name)
		context.next()
		return state

	def handleResource(self, context: RouteContext, resourcePath: str) -> HandlerState:
		root: Path = self.config.rootDirectory
		# NOTE: Every request goes through the resolver, including those
		# following links from a previously rendered listing.
		match self.resolver.resolve(resourcePath, root, uri=context.requestUri):
			case File(path=path):
				return (
					HandlerState.ServingFile
					if self.streamer.serve(context, path)
					else HandlerState.Rejected
				)
			case Directory(path=path):
				return self.handleDirectory(context, path)
			case Rejected(path=path, reason=reason):
				self.logger.debug(
					"Request rejected",
					Reason=reason.value,
					Path=str(path) if path else resourcePath,
					URI=context.requestUri,
				)
				return HandlerState.Rejected
			case _:
				raise RuntimeError(f"Unexpected resolved target for: {resourcePath}")

	def handleDirectory(self, context: RouteContext, directory: Path) -> HandlerState:
		root: Path = self.config.rootDirectory
		index: Path | None = self.resolver.welcomeFile(directory, root)
		if index is not None:
			return (
				HandlerState.ResolvingWelcome
				if self.streamer.serve(context, index)
				else HandlerState.Rejected
			)
		elif context.requestMethod not in ("GET", "HEAD"):
			self.logger.warning(
				"Unsupported request method",
				Method=context.requestMethod,
				Path=str(directory),
				URI=context.requestUri,
			)
			return HandlerState.Rejected
		else:
			self.sendDirectoryListing(context, directory)
			return HandlerState.ListingDirectory

	def listEntries(self, context: RouteContext, directory: Path) -> list[DirEntry]:
		return self.lister.list(
			directory,
			self.config.rootDirectory,
			context.applicationPath,
			directoryUrl(self.config.urlPrefix, directory, self.config.rootDirectory),
			uri=context.requestUri,
		)

	def sendDirectoryListing(self, context: RouteContext, directory: Path) -> None:
		dirUrl: str = directoryUrl(
			self.config.urlPrefix, directory, self.config.rootDirectory
		)
		self.renderer.render(
			context,
			self.listEntries(context, directory),
			dirUrl,
			self.config,
		)


# EOF

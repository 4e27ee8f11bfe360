import os
from pathlib import Path
from typing import BinaryIO

from .api import CacheToolkit, ContentTypeResolver, RouteContext
from .cache import HTTPCacheToolkit
from .errors import MetadataReadFailure
from .http.model import attachment
from .model import Validation
from .utils.files import MIME
from .utils.logging import LOGGER, Logger


class ResourceStreamer:
	"""Sends a single file, honouring HEAD requests and conditional GETs."""

	def __init__(
		self,
		*,
		cache: CacheToolkit | None = None,
		mimeTypes: ContentTypeResolver = MIME,
		logger: Logger = LOGGER,
	) -> None:
		self.cache: CacheToolkit = cache or HTTPCacheToolkit()
		self.mimeTypes: ContentTypeResolver = mimeTypes
		self.logger: Logger = logger

	def validate(self, context: RouteContext, path: Path) -> Validation:
		"""Sets the validation headers for the resource at `path`."""
		try:
			lastModified: int = path.stat().st_mtime_ns // 1_000_000
		except OSError as e:
			return Validation.Failed(str(e), e)
		return self.cache.addValidationHeaders(context, lastModified)

	def setResponseHeaders(self, context: RouteContext, path: Path) -> Validation:
		validation = self.validate(context, path)
		if validation.isFailed:
			raise MetadataReadFailure(path, validation.reason) from validation.error
		return validation

	def open(self, path: Path) -> BinaryIO:
		return open(path, "rb")

	def serve(self, context: RouteContext, path: Path) -> bool:
		"""Dispatches on the request method, returns `True` when a response
		was produced."""
		match context.requestMethod:
			case "HEAD":
				self.head(context, path)
				return True
			case "GET":
				self.stream(context, path)
				return True
			case method:
				self.logger.warning(
					"Unsupported request method",
					Method=method,
					Path=str(path),
					URI=context.requestUri,
				)
				return False

	def head(self, context: RouteContext, path: Path) -> None:
		if not self.setResponseHeaders(context, path).isNotModified:
			self.describe(context, path)
		context.response.commit()

	def describe(self, context: RouteContext, path: Path) -> None:
		"""Sets the entity headers that `send` would set, from the metadata
		only."""
		try:
			length: int = path.stat().st_size
		except OSError as e:
			raise MetadataReadFailure(path, str(e)) from e
		contentType: str | None = self.mimeTypes.contentTypeFor(path.name)
		response = context.response
		if contentType:
			response.contentType(contentType)
		else:
			response.contentType("application/octet-stream")
			response.setHeader("Content-Disposition", attachment(path.name))
		response.setHeader("Content-Length", length)

	def stream(self, context: RouteContext, path: Path) -> None:
		if self.setResponseHeaders(context, path).isNotModified:
			# Nothing is streamed, the response is a 304
			context.response.commit()
		else:
			self.send(context, path)

	def send(self, context: RouteContext, path: Path) -> None:
		contentType: str | None = self.mimeTypes.contentTypeFor(path.name)
		stream: BinaryIO = self.open(path)
		try:
			length: int | None = self.length(stream)
			if contentType:
				self.logger.debug("Streaming as resource", Path=str(path))
				context.response.contentType(contentType)
				context.response.ok().resource(stream, length)
			else:
				self.logger.debug("Streaming as file", Path=str(path))
				context.response.ok().file(path.name, stream, length)
		except BaseException:
			stream.close()
			raise

	@staticmethod
	def length(stream: BinaryIO) -> int | None:
		try:
			return os.fstat(stream.fileno()).st_size
		except (OSError, AttributeError, ValueError):
			return None


# EOF

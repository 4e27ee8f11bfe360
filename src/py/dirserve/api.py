from pathlib import Path
from typing import Any, BinaryIO, Protocol, runtime_checkable

from .model import Validation

# -----------------------------------------------------------------------------
#
# CAPABILITIES
#
# -----------------------------------------------------------------------------
# --
# The directory handler only talks to its environment through these
# interfaces. The `dirserve.http`, `dirserve.cache`, `dirserve.templates` and
# `dirserve.utils.files` modules provide the default implementations.


@runtime_checkable
class Response(Protocol):
	@property
	def status(self) -> int: ...

	@property
	def isCommitted(self) -> bool: ...

	def ok(self) -> "Response": ...

	def setStatus(self, status: int) -> "Response": ...

	def contentType(self, contentType: str) -> "Response": ...

	def setHeader(self, name: str, value: str | int | None) -> "Response": ...

	def resource(self, stream: BinaryIO, length: int | None = None) -> "Response": ...

	def file(
		self, filename: str, stream: BinaryIO, length: int | None = None
	) -> "Response": ...

	def commit(self) -> "Response": ...


@runtime_checkable
class RouteContext(Protocol):
	"""The per-request context given to handlers."""

	@property
	def requestMethod(self) -> str: ...

	@property
	def requestUri(self) -> str: ...

	@property
	def applicationPath(self) -> str: ...

	@property
	def response(self) -> Response: ...

	def header(self, name: str) -> str | None: ...

	def parameter(self, name: str) -> str | None: ...

	def setLocal(self, name: str, value: Any) -> None: ...

	def render(self, templateName: str) -> None: ...

	def html(self, content: str) -> None: ...

	def next(self) -> None: ...


class CacheToolkit(Protocol):
	def addValidationHeaders(
		self, context: RouteContext, lastModified: int
	) -> Validation: ...


class ContentTypeResolver(Protocol):
	def contentTypeFor(self, filename: str | Path) -> str | None: ...


class TemplateRenderer(Protocol):
	def render(self, templateName: str, bindings: dict[str, Any]) -> str: ...


# EOF

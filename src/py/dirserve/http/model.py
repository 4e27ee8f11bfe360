from typing import Any, BinaryIO, Iterator, NamedTuple, TypeAlias
from urllib.parse import quote

from ..api import TemplateRenderer
from ..errors import TemplateNotFound
from .status import HTTP_STATUS

DEFAULT_ENCODING: str = "utf8"
STREAM_CHUNK: int = 64_000

# -----------------------------------------------------------------------------
#
# HELPERS
#
# -----------------------------------------------------------------------------


def headername(name: str, *, headers: dict[str, str] = {}) -> str:
	"""Normalizes the header name as `Kebab-Case`."""
	if name in headers:
		return headers[name]
	key: str = name.lower()
	if key in headers:
		return headers[key]
	else:
		normalized: str = "-".join(_.capitalize() for _ in name.split("-"))
		headers[key] = normalized
		return normalized


def attachment(filename: str) -> str:
	"""Returns a `Content-Disposition` value for downloading `filename`."""
	ascii_name: str = filename.encode("ascii", "replace").decode("ascii")
	ascii_name = ascii_name.replace("\\", "_").replace('"', "_")
	if ascii_name == filename:
		return f'attachment; filename="{filename}"'
	else:
		encoded: str = quote(filename, errors="surrogateescape")
		return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{encoded}"


# -----------------------------------------------------------------------------
#
# BODY
#
# -----------------------------------------------------------------------------


class HTTPBodyBlob(NamedTuple):
	"""A body held in memory."""

	payload: bytes = b""

	@property
	def length(self) -> int:
		return len(self.payload)


class HTTPBodyStream(NamedTuple):
	"""A body read from an open binary stream, which the response owns."""

	stream: BinaryIO
	length: int | None = None


THTTPBody: TypeAlias = HTTPBodyBlob | HTTPBodyStream

# -----------------------------------------------------------------------------
#
# REQUEST
#
# -----------------------------------------------------------------------------


class HTTPRequest:
	"""An incoming request, `path` is the percent-decoded request path."""

	__slots__ = ["method", "path", "query", "headers", "protocol", "applicationPath"]

	def __init__(
		self,
		method: str,
		path: str,
		query: str = "",
		headers: dict[str, str] | None = None,
		*,
		protocol: str = "HTTP/1.1",
		applicationPath: str = "",
	):
		self.method: str = method.upper()
		self.path: str = path
		self.query: str = query
		self.headers: dict[str, str] = {
			headername(k): v for k, v in (headers or {}).items()
		}
		self.protocol: str = protocol
		self.applicationPath: str = applicationPath

	@property
	def uri(self) -> str:
		return f"{self.path}?{self.query}" if self.query else self.path

	def header(self, name: str) -> str | None:
		return self.headers.get(headername(name))

	def __str__(self) -> str:
		return f"Request({self.method} {self.uri} {self.headers})"


# -----------------------------------------------------------------------------
#
# RESPONSE
#
# -----------------------------------------------------------------------------


class HTTPResponse:
	"""A mutable response, filled by handlers and then written by the
	server. A response that holds a stream body must be closed."""

	__slots__ = ["protocol", "status", "message", "headers", "body", "isCommitted"]

	def __init__(self, protocol: str = "HTTP/1.1", status: int = 200):
		self.protocol: str = protocol
		self.status: int = status
		self.message: str | None = None
		self.headers: dict[str, str] = {}
		self.body: THTTPBody | None = None
		self.isCommitted: bool = False

	def getHeader(self, name: str) -> str | None:
		return self.headers.get(headername(name))

	def setHeader(self, name: str, value: str | int | None) -> "HTTPResponse":
		if value is None:
			self.headers.pop(headername(name), None)
		else:
			self.headers[headername(name)] = str(value)
		return self

	def setStatus(self, status: int, message: str | None = None) -> "HTTPResponse":
		self.status = status
		self.message = message
		return self

	def ok(self) -> "HTTPResponse":
		return self.setStatus(200)

	def contentType(self, contentType: str) -> "HTTPResponse":
		return self.setHeader("Content-Type", contentType)

	def send(self, content: str | bytes, contentType: str | None = None) -> "HTTPResponse":
		"""Sets an in-memory body and commits the response."""
		self.close()
		payload: bytes = (
			content.encode(DEFAULT_ENCODING) if isinstance(content, str) else content
		)
		if contentType:
			self.contentType(contentType)
		self.body = HTTPBodyBlob(payload)
		self.setHeader("Content-Length", len(payload))
		return self.commit()

	def resource(self, stream: BinaryIO, length: int | None = None) -> "HTTPResponse":
		"""Sets the open `stream` as the body and commits the response. The
		response takes ownership of the stream."""
		self.close()
		self.body = HTTPBodyStream(stream, length)
		if length is not None:
			self.setHeader("Content-Length", length)
		return self.commit()

	def file(
		self, filename: str, stream: BinaryIO, length: int | None = None
	) -> "HTTPResponse":
		"""Like `resource`, but sent as a download of an untyped file."""
		if not self.getHeader("Content-Type"):
			self.contentType("application/octet-stream")
		self.setHeader("Content-Disposition", attachment(filename))
		return self.resource(stream, length)

	def commit(self) -> "HTTPResponse":
		self.isCommitted = True
		return self

	@property
	def hasBody(self) -> bool:
		return self.body is not None

	def iterBody(self, size: int = STREAM_CHUNK) -> Iterator[bytes]:
		"""Iterates on the body bytes, closing the stream once done."""
		body = self.body
		if body is None:
			return
		elif isinstance(body, HTTPBodyBlob):
			yield body.payload
		else:
			try:
				while chunk := body.stream.read(size):
					yield chunk
			finally:
				self.close()

	def read(self) -> bytes:
		return b"".join(self.iterBody())

	def close(self) -> None:
		if isinstance(self.body, HTTPBodyStream):
			stream = self.body.stream
			self.body = None
			stream.close()

	def head(self) -> bytes:
		"""Serializes the head as a payload."""
		message: str = self.message or HTTP_STATUS.get(self.status, "Unknown status")
		lines: list[str] = [f"{k}: {v}" for k, v in self.headers.items()]
		lines.insert(0, f"{self.protocol} {self.status} {message}")
		lines.append("")
		lines.append("")
		return "\r\n".join(lines).encode("latin-1", "replace")

	def __str__(self) -> str:
		return f"Response({self.protocol} {self.status} {self.headers} {self.body})"


# -----------------------------------------------------------------------------
#
# CONTEXT
#
# -----------------------------------------------------------------------------


class HTTPContext:
	"""Binds a request, its response, the route parameters and the values
	exposed to templates."""

	__slots__ = ["request", "response", "parameters", "locals", "renderer", "hasNext"]

	def __init__(
		self,
		request: HTTPRequest,
		parameters: dict[str, str] | None = None,
		*,
		renderer: TemplateRenderer | None = None,
	):
		self.request: HTTPRequest = request
		self.response: HTTPResponse = HTTPResponse(request.protocol)
		self.parameters: dict[str, str] = parameters or {}
		self.locals: dict[str, Any] = {}
		self.renderer: TemplateRenderer | None = renderer
		self.hasNext: bool = False

	@property
	def requestMethod(self) -> str:
		return self.request.method

	@property
	def requestUri(self) -> str:
		return self.request.uri

	@property
	def applicationPath(self) -> str:
		return self.request.applicationPath

	def header(self, name: str) -> str | None:
		return self.request.header(name)

	def parameter(self, name: str) -> str | None:
		return self.parameters.get(name)

	def setLocal(self, name: str, value: Any) -> None:
		self.locals[name] = value

	def render(self, templateName: str) -> None:
		if self.renderer is None:
			raise TemplateNotFound(templateName)
		self.html(self.renderer.render(templateName, dict(self.locals)))

	def html(self, content: str) -> None:
		self.response.ok().send(content, "text/html")

	def next(self) -> None:
		self.hasNext = True


# EOF

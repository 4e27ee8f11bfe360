import asyncio
import socket
import threading
from dataclasses import dataclass
from signal import SIGINT, SIGTERM
from typing import Any, Callable, NamedTuple
from urllib.parse import unquote

from . import config
from .api import TemplateRenderer
from .handler import PATH_PARAMETER, DirectoryResourceHandler
from .http.model import (
	HTTPBodyBlob,
	HTTPBodyStream,
	HTTPContext,
	HTTPRequest,
	HTTPResponse,
)
from .templates import Templates
from .utils.logging import LOGGER, Logger

EOH: bytes = b"\r\n\r\n"

SERVER_BAD_REQUEST: bytes = (
	b"HTTP/1.1 400 Bad Request\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 11\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Bad Request"
)

# -----------------------------------------------------------------------------
#
# APPLICATION
#
# -----------------------------------------------------------------------------


class Application:
	"""Dispatches requests to the first directory handler mounted on their
	path. Requests that no handler answers fall through to a 404."""

	def __init__(
		self,
		handlers: list[DirectoryResourceHandler],
		*,
		renderer: TemplateRenderer | None = None,
		logger: Logger = LOGGER,
	) -> None:
		self.handlers: list[DirectoryResourceHandler] = handlers
		self.renderer: TemplateRenderer = renderer or Templates()
		self.logger: Logger = logger

	def process(self, request: HTTPRequest) -> HTTPContext:
		for handler in self.handlers:
			path: str | None = handler.match(request.path)
			if path is None:
				continue
			context = HTTPContext(
				request, {PATH_PARAMETER: path}, renderer=self.renderer
			)
			try:
				handler.handle(context)
			except Exception as e:
				self.logger.exception(e, f"Handler failed for {request.uri}")
				context.response.close()
				context.response = HTTPResponse(request.protocol)
				context.response.setStatus(500).send(
					"Internal Server Error", "text/plain"
				)
				return context
			if context.response.isCommitted:
				return context
		context = HTTPContext(request, renderer=self.renderer)
		context.response.setStatus(404).send("Not Found", "text/plain")
		return context


# -----------------------------------------------------------------------------
#
# PARSING
#
# -----------------------------------------------------------------------------


def parseRequest(head: bytes) -> HTTPRequest | None:
	"""Parses the request line and headers, returns `None` when malformed."""
	try:
		lines: list[str] = head.decode("latin-1").split("\r\n")
		method, uri, protocol = lines[0].split(" ", 2)
	except ValueError:
		return None
	if not protocol.startswith("HTTP/"):
		return None
	path, _, query = uri.partition("?")
	headers: dict[str, str] = {}
	for line in lines[1:]:
		i = line.find(":")
		if i != -1:
			headers[line[:i].strip()] = line[i + 1 :].strip()
	return HTTPRequest(
		method,
		unquote(path, errors="surrogateescape"),
		query,
		headers,
		protocol=protocol,
	)


# -----------------------------------------------------------------------------
#
# SERVER
#
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class ServerState:
	isRunning: bool = True
	logger: Logger = LOGGER

	def stop(self) -> None:
		self.logger.info("Server stopping…")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			self.logger.exception(e)


class ServerOptions(NamedTuple):
	host: str = "0.0.0.0"  # nosec: B104
	port: int = 8000
	backlog: int = 1_024
	timeout: float = 10.0
	# Polling timeout for accepting new connections
	polling: float = 1.0
	readsize: int = 4_096
	maxHeadSize: int = 64_000
	logRequests: bool = True
	condition: Callable[[], bool] | None = None
	stopSignals: bool = True


OPTIONS: ServerOptions = ServerOptions()


class AIOSocketServer:
	"""AsyncIO backend using sockets directly, one request per connection.
	Handlers run in the loop's default executor as they do blocking
	filesystem I/O."""

	@staticmethod
	async def ReadHead(
		client: socket.socket,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> bytes | None:
		buffer = bytearray()
		while EOH not in buffer:
			if len(buffer) > options.maxHeadSize:
				return None
			chunk: bytes = await asyncio.wait_for(
				loop.sock_recv(client, options.readsize), timeout=options.timeout
			)
			if not chunk:
				return None
			buffer += chunk
		return bytes(buffer[: buffer.index(EOH)])

	@staticmethod
	async def SendResponse(
		client: socket.socket,
		loop: asyncio.AbstractEventLoop,
		request: HTTPRequest,
		response: HTTPResponse,
	) -> None:
		try:
			body = response.body
			# HEAD responses carry the entity headers of the GET
			if body is None and response.status != 304 and request.method != "HEAD":
				response.setHeader("Content-Length", 0)
			response.setHeader("Connection", "close")
			await loop.sock_sendall(client, response.head())
			if request.method == "HEAD" or body is None:
				pass
			elif isinstance(body, HTTPBodyBlob):
				await loop.sock_sendall(client, body.payload)
			elif isinstance(body, HTTPBodyStream):
				await loop.sock_sendfile(client, body.stream)
		finally:
			response.close()

	@classmethod
	async def OnRequest(
		cls,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> None:
		logger: Logger = app.logger
		try:
			head: bytes | None = await cls.ReadHead(client, loop, options)
			request: HTTPRequest | None = parseRequest(head) if head else None
			if request is None:
				if head is not None:
					await loop.sock_sendall(client, SERVER_BAD_REQUEST)
				return
			if options.logRequests:
				logger.event(request.method, request.uri)
			context: HTTPContext = await loop.run_in_executor(
				None, app.process, request
			)
			await cls.SendResponse(client, loop, request, context.response)
		except asyncio.TimeoutError:
			logger.warning("Client timed out")
		except (BrokenPipeError, ConnectionResetError):
			# Client did an early close
			pass
		except Exception as e:
			logger.exception(e)
		finally:
			client.close()

	@classmethod
	async def Serve(
		cls,
		app: Application,
		options: ServerOptions = OPTIONS,
	) -> None:
		"""Main server coroutine."""
		logger: Logger = app.logger
		server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
		try:
			server.bind((options.host, options.port))
		except OSError as e:
			logger.error(
				f"Unable to bind to {options.host}:{options.port}, aborting.",
				"HOSTPORTERR",
			)
			server.close()
			raise e from e
		server.listen(options.backlog)
		server.setblocking(False)

		tasks: set[asyncio.Task[None]] = set()
		loop = asyncio.get_running_loop()
		state = ServerState(logger=logger)
		# Signal handlers can only be registered from the main thread
		if (
			options.stopSignals
			and threading.current_thread() is threading.main_thread()
		):
			loop.add_signal_handler(SIGINT, lambda: state.stop())
			loop.add_signal_handler(SIGTERM, lambda: state.stop())
		loop.set_exception_handler(state.onException)

		logger.info(
			"Directory server listening",
			icon="🚀",
			Host=options.host,
			Port=options.port,
			Mounts=[f"{_.urlPath or '/'}→{_.directory}" for _ in app.handlers],
		)

		try:
			while state.isRunning:
				if options.condition and not options.condition():
					break
				try:
					client, _ = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling or 1.0
					)
				except asyncio.TimeoutError:
					continue
				except OSError as e:
					# This can be: [OSError] [Errno 24] Too many open files
					if e.errno == 24:
						await asyncio.sleep(0.1)
					else:
						logger.exception(e)
					continue
				task = loop.create_task(
					cls.OnRequest(app, client, loop=loop, options=options)
				)
				tasks.add(task)
				task.add_done_callback(tasks.discard)
		finally:
			server.close()
			for task in tasks:
				task.cancel()
			await asyncio.gather(*tasks, return_exceptions=True)


def run(
	*handlers: DirectoryResourceHandler,
	host: str = config.HOST,
	port: int = config.PORT,
	renderer: TemplateRenderer | None = None,
	logRequests: bool = config.LOG_REQUESTS,
	condition: Callable[[], bool] | None = None,
	logger: Logger = LOGGER,
) -> None:
	"""High level function to run the server."""
	options = ServerOptions(
		host=host,
		port=port,
		condition=condition,
		logRequests=logRequests,
	)
	app = Application(list(handlers), renderer=renderer, logger=logger)
	try:
		asyncio.run(AIOSocketServer.Serve(app, options))
	except KeyboardInterrupt:
		logger.event("ManualShutdown")
	logger.event("EOK")


# EOF

from pathlib import Path

import pytest

from dirserve.errors import MetadataReadFailure
from dirserve.handler import DirectoryResourceHandler, HandlerState
from dirserve.http.model import HTTPBodyStream, HTTPResponse
from dirserve.model import ServerConfig
from dirserve.streamer import ResourceStreamer

VALIDATION_HEADERS = ("Etag", "Last-Modified", "Cache-Control")
ENTITY_HEADERS = ("Content-Type", "Content-Length", "Content-Disposition")


class RecordingStreamer(ResourceStreamer):
	"""Keeps track of the files it opens."""

	def __init__(self, **kwargs):
		super().__init__(**kwargs)
		self.opened: list = []

	def open(self, path: Path):
		stream = super().open(path)
		self.opened.append(stream)
		return stream


@pytest.fixture
def streamer(logs) -> RecordingStreamer:
	return RecordingStreamer(logger=logs.logger)


@pytest.fixture
def handler(tree, logs, streamer) -> DirectoryResourceHandler:
	return DirectoryResourceHandler(
		"/files", tree, streamer=streamer, logger=logs.logger
	).setTimestampPattern("%Y")


# -----------------------------------------------------------------------------
#
# CONFIGURATION
#
# -----------------------------------------------------------------------------


def test_uri_pattern_and_match(tree):
	handler = DirectoryResourceHandler("/files/", tree)
	assert handler.urlPath == "/files"
	assert handler.uriPattern == "/files/?{path: .*}"
	assert handler.match("/files") == ""
	assert handler.match("/files/") == ""
	assert handler.match("/files/sub/a.txt") == "sub/a.txt"
	assert handler.match("/files-evil/a.txt") is None
	assert handler.match("/other") is None
	root = DirectoryResourceHandler("", tree)
	assert root.uriPattern == "/{path: .*}"
	assert root.match("/a.txt") == "a.txt"


def test_setters_replace_configuration(tree):
	handler = DirectoryResourceHandler("files", tree)
	config = handler.config
	handler.setFileSizePattern("#,##0").setDirectoryTemplate("directory")
	assert handler.fileSizePattern == "#,##0"
	assert handler.directoryTemplate == "directory"
	assert handler.timestampPattern == "%Y-%m-%d %H:%M %z"
	assert config.sizeFormat == "#,000"
	assert config.listingTemplateName is None
	assert handler.directory == tree


def test_invalid_size_pattern_fails_early(tree):
	handler = DirectoryResourceHandler("files", tree)
	with pytest.raises(ValueError):
		handler.setFileSizePattern("bytes")
	assert handler.fileSizePattern == "#,000"
	with pytest.raises(ValueError):
		ServerConfig.Make("files", tree, sizeFormat="")


# -----------------------------------------------------------------------------
#
# FILES
#
# -----------------------------------------------------------------------------


def test_get_streams_file(handler, makeContext, streamer):
	context = makeContext("GET", "a.txt")
	assert handler.handle(context) is HandlerState.ServingFile
	response = context.response
	assert response.status == 200
	assert response.isCommitted
	assert response.getHeader("Content-Type") == "text/plain"
	assert response.getHeader("Content-Length") == "5"
	assert response.read() == b"01234"
	assert context.hasNext
	assert all(_.closed for _ in streamer.opened)


def test_untyped_file_is_sent_as_attachment(handler, makeContext):
	context = makeContext("GET", "data.unknownext")
	handler.handle(context)
	response = context.response
	assert response.getHeader("Content-Type") == "application/octet-stream"
	assert (
		response.getHeader("Content-Disposition")
		== 'attachment; filename="data.unknownext"'
	)
	assert response.read() == b"\x00\x01"


def test_head_sends_no_body(handler, makeContext, streamer):
	get = makeContext("GET", "b.txt")
	handler.handle(get)
	head = makeContext("HEAD", "b.txt")
	assert handler.handle(head) is HandlerState.ServingFile
	assert head.response.isCommitted
	assert head.response.body is None
	assert len(streamer.opened) == 1
	for name in VALIDATION_HEADERS + ENTITY_HEADERS:
		assert head.response.getHeader(name) == get.response.getHeader(name)
	assert head.response.getHeader("Content-Length") == "10"
	get.response.close()


def test_head_describes_untyped_files(handler, makeContext, streamer):
	context = makeContext("HEAD", "data.unknownext")
	handler.handle(context)
	response = context.response
	assert response.getHeader("Content-Type") == "application/octet-stream"
	assert (
		response.getHeader("Content-Disposition")
		== 'attachment; filename="data.unknownext"'
	)
	assert response.getHeader("Content-Length") == "2"
	assert not streamer.opened


def test_head_not_modified_has_no_entity_headers(handler, makeContext):
	first = makeContext("HEAD", "a.txt")
	handler.handle(first)
	etag = first.response.getHeader("ETag")
	context = makeContext("HEAD", "a.txt", {"If-None-Match": etag})
	handler.handle(context)
	assert context.response.status == 304
	assert context.response.getHeader("Content-Length") is None


def test_not_modified_opens_nothing(handler, makeContext, streamer):
	first = makeContext("GET", "a.txt")
	handler.handle(first)
	first.response.close()
	etag = first.response.getHeader("ETag")
	for headers in (
		{"If-None-Match": etag},
		{"If-Modified-Since": first.response.getHeader("Last-Modified")},
	):
		context = makeContext("GET", "a.txt", headers)
		handler.handle(context)
		assert context.response.status == 304
		assert context.response.isCommitted
		assert context.response.body is None
	assert len(streamer.opened) == 1


def test_unsupported_method_is_logged(handler, makeContext, logs):
	context = makeContext("POST", "a.txt", uri="/files/a.txt")
	assert handler.handle(context) is HandlerState.Rejected
	assert not context.response.isCommitted
	assert context.response.body is None
	(warning,) = logs.warnings()
	assert warning.message == "Unsupported request method"
	assert warning.context["Method"] == "POST"
	assert warning.context["URI"] == "/files/a.txt"
	assert context.hasNext


def test_metadata_failure_is_raised(tree, makeContext, streamer):
	context = makeContext("GET", "gone.txt")
	with pytest.raises(MetadataReadFailure) as e:
		streamer.stream(context, tree / "gone.txt")
	assert e.value.path == tree / "gone.txt"
	assert isinstance(e.value.__cause__, FileNotFoundError)
	assert not streamer.opened


def test_stream_is_closed_when_sending_fails(tree, makeContext, streamer, monkeypatch):
	context = makeContext("GET", "a.txt")

	def failing(*args, **kwargs):
		raise RuntimeError("Response failed")

	monkeypatch.setattr(HTTPResponse, "resource", failing)
	with pytest.raises(RuntimeError):
		streamer.send(context, tree / "a.txt")
	(stream,) = streamer.opened
	assert stream.closed


def test_closing_response_closes_stream(handler, makeContext, streamer):
	context = makeContext("GET", "a.txt")
	handler.handle(context)
	assert isinstance(context.response.body, HTTPBodyStream)
	context.response.close()
	assert context.response.body is None
	assert streamer.opened[0].closed


# -----------------------------------------------------------------------------
#
# REJECTIONS
#
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
	"path", ["../outside.txt", "../root-evil/secret.txt", "sub/../../outside.txt", "missing"]
)
def test_rejected_paths_send_nothing(handler, makeContext, streamer, logs, path):
	context = makeContext("GET", path, uri=f"/files/{path}")
	assert handler.handle(context) is HandlerState.Rejected
	assert not context.response.isCommitted
	assert context.response.body is None
	assert not streamer.opened
	assert context.hasNext
	assert logs.warnings()[0].context["URI"] == f"/files/{path}"


def test_parent_links_are_resolved_again(handler, makeContext):
	context = makeContext("GET", "sub/..")
	assert handler.handle(context) is HandlerState.ListingDirectory
	assert '<a href="/files/sub">sub</a>' in context.response.read().decode()
	assert handler.handle(makeContext("GET", "sub/../..")) is HandlerState.Rejected


# -----------------------------------------------------------------------------
#
# DIRECTORIES
#
# -----------------------------------------------------------------------------


def test_welcome_file_precedence(handler, makeContext):
	context = makeContext("GET", "site")
	assert handler.handle(context) is HandlerState.ResolvingWelcome
	assert context.response.read() == b"<h1>html</h1>"
	assert context.response.getHeader("Content-Type") == "text/html"
	context = makeContext("GET", "legacy/")
	assert handler.handle(context) is HandlerState.ResolvingWelcome
	assert context.response.read() == b"<h1>legacy</h1>"


def test_welcome_file_head(handler, makeContext, streamer):
	context = makeContext("HEAD", "site")
	assert handler.handle(context) is HandlerState.ResolvingWelcome
	assert context.response.body is None
	assert context.response.getHeader("ETag")
	assert not streamer.opened


def test_root_listing(handler, makeContext):
	context = makeContext("GET", "", applicationPath="/app")
	assert handler.handle(context) is HandlerState.ListingDirectory
	page = context.response.read().decode()
	assert page.startswith("<html><body><table><tr><td><a href=\"/app/files/a.txt\">")
	assert "..</a>" not in page
	assert page.index("a.txt") < page.index("b.txt") < page.index("Readme.md")


def test_subdirectory_listing(handler, makeContext):
	context = makeContext("GET", "sub/")
	handler.handle(context)
	page = context.response.read().decode()
	assert page.startswith(
		'<html><body><table><tr><td><a href="/files/sub/..">..</a></td><td></td><td></td></tr>\n'
	)
	assert '<a href="/files/sub/nested.txt">nested.txt</a></td><td>006</td>' in page


def test_templated_listing(handler, makeContext):
	handler.setDirectoryTemplate("directory")
	context = makeContext("GET", "sub")
	assert handler.handle(context) is HandlerState.ListingDirectory
	assert context.locals["dirPath"] == "/sub"
	assert context.locals["numFiles"] == 1
	assert "<!DOCTYPE html>" in context.response.read().decode()


def test_directory_with_unsupported_method(handler, makeContext, logs):
	context = makeContext("DELETE", "sub")
	assert handler.handle(context) is HandlerState.Rejected
	assert not context.response.isCommitted
	assert logs.warnings()[0].context["Method"] == "DELETE"


# EOF

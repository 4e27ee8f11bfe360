from datetime import datetime, timezone
from email.utils import formatdate, parsedate_to_datetime

from . import config
from .api import RouteContext
from .model import CONTINUE, NOT_MODIFIED, Validation


class HTTPCacheToolkit:
	"""Sets the `Last-Modified`, `ETag` and `Cache-Control` headers of a
	resource response, and answers conditional requests with a
	`304 Not Modified` status."""

	def __init__(self, maxAge: int = config.CACHE_MAX_AGE, *, useETag: bool = True):
		self.maxAge: int = maxAge
		self.useETag: bool = useETag

	@staticmethod
	def ETag(lastModified: int) -> str:
		return f'"{lastModified:x}"'

	def addValidationHeaders(
		self, context: RouteContext, lastModified: int
	) -> Validation:
		"""Updates the context response given the resource's `lastModified`
		time in epoch milliseconds."""
		response = context.response
		seconds: int = lastModified // 1000
		etag: str | None = self.ETag(lastModified) if self.useETag else None
		response.setHeader(
			"Cache-Control", f"max-age={self.maxAge}" if self.maxAge > 0 else "no-cache"
		)
		response.setHeader("Last-Modified", formatdate(seconds, usegmt=True))
		if etag:
			response.setHeader("ETag", etag)
		if self.isNotModified(context, etag, seconds):
			response.setStatus(304)
			return NOT_MODIFIED
		else:
			return CONTINUE

	def isNotModified(
		self, context: RouteContext, etag: str | None, seconds: int
	) -> bool:
		# NOTE: When present, `If-None-Match` takes precedence over
		# `If-Modified-Since` (RFC 7232 §6).
		if etag and (match := context.header("If-None-Match")):
			for tag in match.split(","):
				tag = tag.strip()
				if tag == "*" or tag.removeprefix("W/") == etag:
					return True
			return False
		elif since := context.header("If-Modified-Since"):
			try:
				date: datetime = parsedate_to_datetime(since)
			except (TypeError, ValueError, IndexError):
				return False
			if date is None:
				return False
			if date.tzinfo is None:
				date = date.replace(tzinfo=timezone.utc)
			return seconds <= int(date.timestamp())
		else:
			return False


# EOF

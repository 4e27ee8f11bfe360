import mimetypes
from pathlib import Path

mimetypes.init()

# Types that `mimetypes` does not know, or gets wrong, keyed by extension
MIME_TYPES: dict[str, str] = dict(
	bz2="application/x-bzip",
	gz="application/x-gzip",
	md="text/markdown",
	mjs="text/javascript",
	wasm="application/wasm",
	webmanifest="application/manifest+json",
)

# Types keyed by full file name
NAME_TYPES: dict[str, str] = {
	"importmap.json": "application/importmap+json",
}


class MimeTypes:
	"""Resolves content types from file names. Unknown extensions resolve to
	`None`, so that callers can decide how to send these."""

	def __init__(
		self,
		types: dict[str, str] | None = None,
		names: dict[str, str] | None = None,
	) -> None:
		self.types: dict[str, str] = MIME_TYPES | types if types else dict(MIME_TYPES)
		self.names: dict[str, str] = NAME_TYPES | names if names else dict(NAME_TYPES)

	def register(self, extension: str, contentType: str) -> "MimeTypes":
		self.types[extension.lstrip(".").lower()] = contentType
		return self

	def contentTypeFor(self, filename: str | Path) -> str | None:
		name: str = Path(filename).name
		if name in self.names:
			return self.names[name]
		if "." in name:
			ext: str = name.rsplit(".", 1)[-1].lower()
			if ext in self.types:
				return self.types[ext]
		return mimetypes.guess_type(name, strict=False)[0]


MIME: MimeTypes = MimeTypes()


# EOF

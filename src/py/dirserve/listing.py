import os
from pathlib import Path
from urllib.parse import quote

from .api import RouteContext
from .model import DirEntry, ListingSummary, ServerConfig, entryOrder
from .utils.format import formatSize, formatTimestamp
from .utils.htmpl import H, Node, html
from .utils.logging import LOGGER, Logger

PARENT_NAME: str = ".."


def directoryUrl(urlPrefix: str, directory: Path, root: Path) -> str:
	"""Returns the absolute URI of `directory`, which is the mount prefix
	followed by the directory path relative to the root."""
	relative: str = directory.relative_to(root).as_posix()
	return f"{urlPrefix}/{'' if relative == '.' else relative}"


def urlQuote(path: str) -> str:
	"""Percent-encodes `path`, keeping the original bytes of filesystem names
	that are not valid UTF-8."""
	return quote(path, errors="surrogateescape")


def entryUrl(requestUrlBase: str, dirUrl: str, name: str) -> str:
	base: str = dirUrl if dirUrl.startswith("/") else f"/{dirUrl}"
	return f"{requestUrlBase}{urlQuote(base.removesuffix('/'))}/{urlQuote(name)}"


# -----------------------------------------------------------------------------
#
# LISTER
#
# -----------------------------------------------------------------------------


class EntryLister:
	"""Enumerates the immediate children of a directory as sorted entries."""

	def __init__(self, *, logger: Logger = LOGGER) -> None:
		self.logger: Logger = logger

	def children(self, directory: Path, *, uri: str | None = None) -> list[os.DirEntry[str]]:
		"""Returns the children of `directory`, or nothing when the directory
		can't be read."""
		try:
			with os.scandir(directory) as items:
				return list(items)
		except OSError as e:
			self.logger.warning(
				"Could not list directory",
				Path=str(directory),
				URI=uri or str(directory),
				Error=str(e),
			)
			return []

	def list(
		self,
		directory: Path,
		root: Path,
		requestUrlBase: str,
		dirUrl: str,
		*,
		uri: str | None = None,
	) -> list[DirEntry]:
		entries: list[DirEntry] = []
		for item in self.children(directory, uri=uri):
			try:
				stat = item.stat()
			except OSError as e:
				# Dangling links, or entries removed while listing
				self.logger.debug("Skipping entry", Path=item.path, Error=str(e))
				continue
			entries.append(
				DirEntry.FromStat(
					entryUrl(requestUrlBase, dirUrl, item.name),
					item.name,
					Path(item.path),
					stat,
				)
			)
		entries = sorted(entries, key=entryOrder)
		if directory != root:
			parent: Path = directory.parent
			try:
				entries.insert(
					0,
					DirEntry.FromStat(
						entryUrl(requestUrlBase, dirUrl, PARENT_NAME),
						PARENT_NAME,
						parent,
						parent.stat(),
					),
				)
			except OSError as e:
				self.logger.warning(
					"Could not read parent directory",
					Path=str(parent),
					URI=uri or str(directory),
					Error=str(e),
				)
		return entries


# -----------------------------------------------------------------------------
#
# RENDERER
#
# -----------------------------------------------------------------------------


class ListingRenderer:
	"""Sends a directory listing, either as a generated HTML table, or
	through the configured template."""

	def render(
		self,
		context: RouteContext,
		entries: list[DirEntry],
		dirUrl: str,
		config: ServerConfig,
	) -> None:
		if config.listingTemplateName:
			summary: ListingSummary = ListingSummary.FromEntries(entries)
			for name, value in self.bindings(entries, dirUrl, summary, config).items():
				context.setLocal(name, value)
			context.render(config.listingTemplateName)
		else:
			context.html(self.generate(entries, config))

	def bindings(
		self,
		entries: list[DirEntry],
		dirUrl: str,
		summary: ListingSummary,
		config: ServerConfig,
	) -> dict[str, object]:
		"""Returns the values given to the listing template."""
		return {
			"dirUrl": dirUrl,
			"dirPath": dirUrl[len(config.urlPrefix) :],
			"dirEntries": entries,
			"numDirs": summary.dirs,
			"numFiles": summary.files,
			"diskUsage": summary.diskUsage,
			"summary": summary,
			"timestampFormat": config.timestampFormat,
			"sizeFormat": config.sizeFormat,
		}

	def row(self, entry: DirEntry, config: ServerConfig) -> Node:
		synthetic: bool = entry.name == PARENT_NAME
		return H.tr(
			H.td(H.a(entry.label, href=entry.url)),
			H.td(formatSize(entry.size, config.sizeFormat) if entry.isFile else ""),
			H.td(
				""
				if synthetic
				else formatTimestamp(entry.lastModified, config.timestampFormat)
			),
		)

	def generate(self, entries: list[DirEntry], config: ServerConfig) -> str:
		"""Generates a minimal HTML page with one table row per entry."""
		rows: list[Node | str] = []
		for entry in entries:
			rows.append(self.row(entry, config))
			rows.append("\n")
		return "".join(html(H.html(H.body(H.table(rows)))))


# EOF

from typing import Any, Callable, Iterator

from .errors import TemplateNotFound
from .listing import urlQuote
from .model import DirEntry
from .utils.format import formatSize, formatTimestamp, printable
from .utils.htmpl import H, Node, html, raw

TTemplate = Callable[[dict[str, Any]], str | Iterator[str]]

LISTING_CSS: str = """
:root {
    font-family: sans-serif;
    font-size: 14px;
    line-height: 1.35em;
    padding: 20px;
    background: #F0F0F0;
}
h1 {
    margin-top: 1.75em;
    margin-bottom: 1.75em;
    line-height: 1.25em;
}
table {
    border-collapse: collapse;
    margin: 1.25em 0em;
}
td, th {
    padding: 0.25em 1em;
    text-align: left;
}
td.size {
    text-align: right;
}
"""


class Templates:
	"""A template renderer backed by Python functions, keyed by name. Each
	template takes the bindings set on the request context."""

	def __init__(self, templates: dict[str, TTemplate] | None = None) -> None:
		self.templates: dict[str, TTemplate] = {"directory": directory}
		if templates:
			self.templates.update(templates)

	def register(self, name: str, template: TTemplate) -> "Templates":
		self.templates[name] = template
		return self

	def render(self, templateName: str, bindings: dict[str, Any]) -> str:
		template = self.templates.get(templateName)
		if template is None:
			raise TemplateNotFound(templateName)
		res = template(bindings)
		return res if isinstance(res, str) else "".join(res)


# -----------------------------------------------------------------------------
#
# DIRECTORY TEMPLATE
#
# -----------------------------------------------------------------------------


def breadcrumbs(dirUrl: str, dirPath: str) -> list[Node | str]:
	prefix: str = dirUrl[: len(dirUrl) - len(dirPath)] if dirPath else dirUrl
	prefix = prefix.rstrip("/")
	res: list[Node | str] = [H.a("/", href=f"{urlQuote(prefix)}/")]
	chunks: list[str] = [_ for _ in dirPath.split("/") if _]
	for i, chunk in enumerate(chunks):
		href: str = urlQuote(f"{prefix}/{'/'.join(chunks[: i + 1])}")
		res.append(H.a(printable(chunk), href=href))
		if i < len(chunks) - 1:
			res.append("/")
	return res


def directory(bindings: dict[str, Any]) -> Iterator[str]:
	"""Renders a listing page from the bindings set by the listing renderer."""
	dirUrl: str = bindings.get("dirUrl", "/")
	dirPath: str = bindings.get("dirPath", "")
	sizeFormat: str = bindings.get("sizeFormat", "#,##0")
	timestampFormat: str = bindings.get("timestampFormat", "%Y-%m-%d %H:%M")
	entries: list[DirEntry] = bindings.get("dirEntries", [])
	rows: list[Node] = [
		H.tr(
			H.td(H.a(f"{_.label}/" if _.isDirectory else _.label, href=_.url)),
			H.td(formatSize(_.size, sizeFormat) if _.isFile else "", _="size"),
			H.td(
				formatTimestamp(_.lastModified, timestampFormat)
				if _.name != ".."
				else ""
			),
		)
		for _ in entries
	]
	return html(
		H.html(
			H.head(
				H.meta(charset="utf-8"),
				H.meta(
					name="viewport",
					content="width=device-width, initial-scale=1.0",
				),
				H.title(printable(dirPath) or "/"),
				H.style(raw(LISTING_CSS)),
			),
			H.body(
				H.h1("Listing for ", *breadcrumbs(dirUrl, dirPath)),
				H.table(
					H.thead(H.tr(H.th("Name"), H.th("Size"), H.th("Modified"))),
					H.tbody(rows),
				),
				H.footer(
					H.small(
						f"{bindings.get('numDirs', 0)} directories, ",
						f"{bindings.get('numFiles', 0)} files, ",
						f"{formatSize(bindings.get('diskUsage', 0), sizeFormat)} bytes",
					)
				),
			),
		),
		doctype="html",
	)


# EOF

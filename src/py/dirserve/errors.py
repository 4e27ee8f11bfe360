from pathlib import Path

# --
# Only the failures that abort a request are exceptions. Rejected paths,
# unsupported methods and unreadable directories are logged by the
# components that encounter them.


class ResourceError(Exception):
	"""Base error for a resource that could not be served."""

	def __init__(self, message: str, path: Path | str | None = None):
		super().__init__(f"{message}: {path}" if path is not None else message)
		self.message: str = message
		self.path: Path | str | None = path


class MetadataReadFailure(ResourceError):
	"""The metadata required for the validation headers could not be read."""

	def __init__(self, path: Path | str, reason: str | None = None):
		super().__init__(
			f"Failed to stream resource{f' ({reason})' if reason else ''}", path
		)
		self.reason: str | None = reason


class TemplateNotFound(ResourceError):
	def __init__(self, name: str):
		super().__init__("No template registered with name", name)
		self.name: str = name


# EOF

from .model import (
	ServerConfig,
	DirEntry,
	ListingSummary,
	File,
	Directory,
	Rejected,
	RejectReason,
	Validation,
)  # NOQA: F401
from .errors import ResourceError, MetadataReadFailure, TemplateNotFound  # NOQA: F401
from .resolver import PathResolver, resolve  # NOQA: F401
from .listing import EntryLister, ListingRenderer  # NOQA: F401
from .streamer import ResourceStreamer  # NOQA: F401
from .cache import HTTPCacheToolkit  # NOQA: F401
from .templates import Templates  # NOQA: F401
from .handler import DirectoryResourceHandler, HandlerState  # NOQA: F401
from .server import run  # NOQA: F401

# EOF

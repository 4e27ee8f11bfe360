import sys

from . import config
from .handler import DirectoryResourceHandler
from .server import run
from .utils.logging import LOGGER, LogLevel


def main(args: list[str] | None = None) -> None:
	"""Serves `ROOT` (or `$DIRSERVE_ROOT`) mounted at `PREFIX` (or
	`$DIRSERVE_PREFIX`): `python -m dirserve [ROOT] [PREFIX]`."""
	args = sys.argv[1:] if args is None else args
	LOGGER.level = LogLevel.Parse(config.LOG_LEVEL, LOGGER.level)
	root: str = args[0] if len(args) > 0 else config.ROOT
	prefix: str = args[1] if len(args) > 1 else config.PREFIX
	handler = DirectoryResourceHandler(prefix, root)
	LOGGER.info("Starting directory server", Root=str(handler.directory))
	run(handler)


if __name__ == "__main__":
	main()

# EOF

from os import getenv

# --
# Defaults for the handlers, and environment configuration used by the
# server and the command line. Handlers themselves only read the values
# they are given.

TIMESTAMP_FORMAT: str = "%Y-%m-%d %H:%M %z"
SIZE_FORMAT: str = "#,000"
WELCOME_FILES: tuple[str, ...] = ("index.html", "index.htm")
CACHE_MAX_AGE: int = int(getenv("DIRSERVE_CACHE_MAX_AGE", 3600))

PORT: int = int(getenv("PORT", 8000))

# If we're starting in a development environment, we want it to be accessible from everywhere
HOST: str = getenv("HOST", "0.0.0.0")  # nosec: B104

ROOT: str = getenv("DIRSERVE_ROOT", ".")
PREFIX: str = getenv("DIRSERVE_PREFIX", "")

LOG_LEVEL: str | None = getenv("DIRSERVE_LOG_LEVEL")
LOG_REQUESTS: bool = getenv("DIRSERVE_LOG_REQUESTS", "1") == "1"

# EOF

"""
Directory Server Example

This demonstrates serving a directory tree from the filesystem.
Features shown:
- Two directories mounted under different prefixes
- Welcome files (`index.html`, then `index.htm`) for directories
- Generated listings, and listings rendered by a template
- Custom size and timestamp patterns

Usage:
    python fileserver.py [DIRECTORY]

Test with:
    http://localhost:8000/files/          # Generated listing
    http://localhost:8000/browse/         # Listing rendered by template
    curl -I http://localhost:8000/files/  # HEAD, validation headers only
"""

import sys

from dirserve import DirectoryResourceHandler, Templates, run
from dirserve.utils.logging import info


def footer(bindings: dict) -> str:
	return f"{bindings['numFiles']} files in {bindings['dirPath'] or '/'}"


if __name__ == "__main__":
	directory = sys.argv[1] if len(sys.argv) > 1 else "."
	info("Starting directory server", Directory=directory)
	run(
		DirectoryResourceHandler("/files", directory).setFileSizePattern("#,##0"),
		DirectoryResourceHandler("/browse", directory)
		.setTimestampPattern("%d %b %Y")
		.setDirectoryTemplate("directory"),
		DirectoryResourceHandler("/summary", directory).setDirectoryTemplate("footer"),
		renderer=Templates({"footer": footer}),
	)

# EOF

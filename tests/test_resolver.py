from pathlib import Path

import pytest

from dirserve.model import Directory, File, RejectReason, Rejected
from dirserve.resolver import PathResolver, isInside, normalize


def test_normalize_strips_single_slashes():
	assert normalize("/a/b/") == "a/b"
	assert normalize("//a//") == "/a/"
	assert normalize("/") == ""
	assert normalize("") == ""


def test_is_inside_compares_components():
	root = Path("/srv/root")
	assert isInside(Path("/srv/root"), root)
	assert isInside(Path("/srv/root/a/b"), root)
	assert not isInside(Path("/srv/root-evil"), root)
	assert not isInside(Path("/srv"), root)


def test_empty_path_is_root(tree, logs):
	resolver = PathResolver(logger=logs.logger)
	assert resolver.resolve("", tree) == Directory(tree)
	assert resolver.resolve("/", tree) == Directory(tree)


def test_classifies_files_and_directories(tree, logs):
	resolver = PathResolver(logger=logs.logger)
	assert resolver.resolve("a.txt", tree) == File(tree / "a.txt")
	assert resolver.resolve("/sub/", tree) == Directory(tree / "sub")
	assert resolver.resolve("sub/./nested.txt", tree) == File(tree / "sub" / "nested.txt")
	assert resolver.resolve("sub/../a.txt", tree) == File(tree / "a.txt")


def test_missing_path_is_not_found(tree, logs):
	resolver = PathResolver(logger=logs.logger)
	res = resolver.resolve("missing.txt", tree, uri="/files/missing.txt")
	assert isinstance(res, Rejected)
	assert res.reason is RejectReason.NotFound
	assert logs.warnings()[0].context["URI"] == "/files/missing.txt"


@pytest.mark.parametrize(
	"path",
	[
		"../outside.txt",
		"../../etc/passwd",
		"sub/../../outside.txt",
		"/../outside.txt",
		"//etc/passwd",
		"sub/../../root-evil/secret.txt",
		"../root-evil/secret.txt",
		"../root-evil",
		"./../root/../outside.txt",
		"..",
		"sub/..\\..\\outside.txt",
		"%2e%2e/outside.txt",
		"..%2Foutside.txt",
	],
)
def test_escapes_are_always_rejected(tree, logs, path):
	res = PathResolver(logger=logs.logger).resolve(path, tree)
	assert isinstance(res, Rejected)


def test_escape_is_logged_with_path_and_uri(tree, logs):
	res = PathResolver(logger=logs.logger).resolve(
		"../root-evil/secret.txt", tree, uri="/files/../root-evil/secret.txt"
	)
	assert res == Rejected(tree.parent / "root-evil" / "secret.txt", RejectReason.Escape)
	(entry,) = logs.warnings()
	assert entry.context["Path"] == str(tree.parent / "root-evil" / "secret.txt")
	assert entry.context["URI"] == "/files/../root-evil/secret.txt"


def test_symlink_escape_is_rejected(tree, logs):
	(tree / "link").symlink_to(tree.parent / "outside.txt")
	(tree / "linkdir").symlink_to(tree.parent / "root-evil", target_is_directory=True)
	resolver = PathResolver(logger=logs.logger)
	assert resolver.resolve("link", tree).reason is RejectReason.Escape
	assert resolver.resolve("linkdir/secret.txt", tree).reason is RejectReason.Escape


def test_symlink_within_root_is_followed(tree, logs):
	(tree / "alias.txt").symlink_to(tree / "a.txt")
	assert PathResolver(logger=logs.logger).resolve("alias.txt", tree) == File(tree / "a.txt")


def test_null_byte_is_rejected(tree, logs):
	res = PathResolver(logger=logs.logger).resolve("a.txt\x00.png", tree)
	assert isinstance(res, Rejected)


def test_welcome_file_precedence(tree, logs):
	resolver = PathResolver(logger=logs.logger)
	assert resolver.welcomeFile(tree / "site", tree) == tree / "site" / "index.html"
	assert resolver.welcomeFile(tree / "legacy", tree) == tree / "legacy" / "index.htm"
	assert resolver.welcomeFile(tree / "sub", tree) is None


def test_welcome_file_must_be_a_file_inside_root(tree, logs):
	(tree / "sub" / "index.html").mkdir()
	(tree / "sub" / "index.htm").symlink_to(tree.parent / "outside.txt")
	assert PathResolver(logger=logs.logger).welcomeFile(tree / "sub", tree) is None


# EOF

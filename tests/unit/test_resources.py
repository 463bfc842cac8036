"""
Tests for resource release and retraction.

This test suite covers:
1. Archive release and removal of the webapp subtree
2. Overlay policy and excluded suffixes
3. Path containment (zip-slip entries, upward subtrees)
4. Directory origins (copy, refused destination, no-op removal)
5. Path helper functions
"""

import tempfile
import zipfile
from pathlib import Path

import pytest

from plinth.component.origin import Origin
from plinth.component.paths import check_relative, contained_path, join_parts
from plinth.component.resources import deploy_resources, remove_resources
from plinth.errors import PathContainmentError, ResourceIOError


def make_archive(path: Path, files: dict[str, bytes]) -> Origin:
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return Origin.detect(path)


def mark_encrypted(path: Path, name: str) -> None:
    """Set the encryption flag on one entry's central directory record."""
    data = bytearray(path.read_bytes())
    pos = data.find(b"PK\x01\x02")
    while pos != -1:
        name_len = int.from_bytes(data[pos + 28 : pos + 30], "little")
        if data[pos + 46 : pos + 46 + name_len] == name.encode():
            data[pos + 8] |= 0x01
        pos = data.find(b"PK\x01\x02", pos + 46)
    path.write_bytes(bytes(data))


WEBAPP_FILES = {
    "META-INF/components-def.xml": b"<components/>",
    "webapp/": b"",
    "webapp/a.html": b"<h1>a</h1>",
    "webapp/js/b.js": b"var b;",
    "webapp/hooks.py": b"print('no')",
    "lib/other.txt": b"not released",
}


class TestPathHelpers:
    """Test path joining and containment."""

    def test_join_parts(self):
        assert join_parts("a/", "/b", "c") == "a/b/c"
        assert join_parts("/webapp/") == "webapp"

    def test_contained_path(self):
        """Joins inside the root should be allowed."""
        root = Path("/srv/webroot")
        assert contained_path(root, "js", "b.js") == root / "js" / "b.js"

    def test_contained_path_escape(self):
        """Joins that climb out of the root should be refused."""
        with pytest.raises(PathContainmentError):
            contained_path(Path("/srv/webroot"), "../etc/passwd")

    def test_check_relative(self):
        assert check_relative("webapp") == "webapp/"
        assert check_relative("webapp/") == "webapp/"
        assert check_relative("") == ""

        for bad in ("/etc", "../../etc", "webapp/../../x", ".."):
            with pytest.raises(PathContainmentError):
                check_relative(bad)


class TestArchiveResources:
    """Test releasing resources from archives."""

    def test_release_and_remove(self):
        """Files should be released, then removed with directories kept."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = make_archive(Path(tmpdir) / "blog.zip", WEBAPP_FILES)
            webroot = Path(tmpdir) / "webroot"

            written = deploy_resources(origin, webroot)

            assert (webroot / "a.html").read_bytes() == b"<h1>a</h1>"
            assert (webroot / "js" / "b.js").read_bytes() == b"var b;"
            assert (webroot / "hooks.py").exists()
            assert not (webroot / "other.txt").exists()
            assert len(written) == 3

            removed = remove_resources(origin, webroot)

            assert len(removed) == 3
            assert not (webroot / "a.html").exists()
            assert not (webroot / "js" / "b.js").exists()
            assert (webroot / "js").is_dir()

    def test_excluded_extensions(self):
        """Excluded suffixes should be neither released nor removed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = make_archive(Path(tmpdir) / "blog.zip", WEBAPP_FILES)
            webroot = Path(tmpdir) / "webroot"
            webroot.mkdir()
            (webroot / "hooks.py").write_text("host file")

            deploy_resources(origin, webroot, excluded_extensions=(".py",))
            assert (webroot / "hooks.py").read_text() == "host file"

            remove_resources(origin, webroot, excluded_extensions=(".py",))
            assert (webroot / "hooks.py").read_text() == "host file"

    def test_overlay_off_keeps_existing(self):
        """Without overlay, existing files should be kept."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = make_archive(Path(tmpdir) / "blog.zip", WEBAPP_FILES)
            webroot = Path(tmpdir) / "webroot"
            webroot.mkdir()
            (webroot / "a.html").write_text("local edit")

            deploy_resources(origin, webroot, overlay=False)

            assert (webroot / "a.html").read_text() == "local edit"
            assert (webroot / "js" / "b.js").exists()

    def test_overlay_on_overwrites(self):
        """With overlay, existing files should be overwritten."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = make_archive(Path(tmpdir) / "blog.zip", WEBAPP_FILES)
            webroot = Path(tmpdir) / "webroot"
            webroot.mkdir()
            (webroot / "a.html").write_text("local edit")

            deploy_resources(origin, webroot, overlay=True)

            assert (webroot / "a.html").read_bytes() == b"<h1>a</h1>"

    def test_zip_slip_entry_rejected(self):
        """An entry escaping the destination should fail before any write."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = make_archive(
                Path(tmpdir) / "evil.zip",
                {
                    "webapp/a.html": b"fine",
                    "webapp/../../evil.txt": b"pwned",
                },
            )
            webroot = Path(tmpdir) / "out" / "webroot"

            with pytest.raises(PathContainmentError):
                deploy_resources(origin, webroot)

            assert not (webroot / "a.html").exists()
            assert not (Path(tmpdir) / "evil.txt").exists()

    def test_upward_subtree_rejected(self):
        """A subtree climbing out of the origin should be refused."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = make_archive(Path(tmpdir) / "blog.zip", WEBAPP_FILES)

            with pytest.raises(PathContainmentError):
                deploy_resources(origin, Path(tmpdir) / "webroot", subtree="../../etc")

    def test_missing_subtree(self):
        """An archive without the subtree should release nothing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = make_archive(Path(tmpdir) / "bare.zip", {"lib/x.txt": b"x"})

            assert deploy_resources(origin, Path(tmpdir) / "webroot") == []
            assert not (Path(tmpdir) / "webroot").exists()

    def test_destination_is_file(self):
        """Write failures should be reported as ResourceIOError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = make_archive(Path(tmpdir) / "blog.zip", WEBAPP_FILES)
            webroot = Path(tmpdir) / "webroot"
            webroot.write_text("i am a file")

            with pytest.raises(ResourceIOError, match="Failed to release"):
                deploy_resources(origin, webroot)

    def test_encrypted_entry(self):
        """An unreadable entry should fail the release but not the other files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "locked.zip"
            make_archive(path, WEBAPP_FILES)
            mark_encrypted(path, "webapp/a.html")
            webroot = Path(tmpdir) / "webroot"

            with pytest.raises(ResourceIOError, match="webapp/a.html"):
                deploy_resources(Origin.detect(path), webroot)

            assert not (webroot / "a.html").exists()
            assert (webroot / "js" / "b.js").read_bytes() == b"var b;"


class TestDirectoryResources:
    """Test releasing resources from directory origins."""

    def _origin(self, root: Path) -> Origin:
        (root / "webapp" / "css").mkdir(parents=True)
        (root / "webapp" / "index.html").write_text("shop")
        (root / "webapp" / "css" / "s.css").write_text("body {}")
        (root / "webapp" / "tool.py").write_text("x = 1")
        return Origin.detect(root)

    def test_copy(self):
        """The subtree should be copied recursively."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = self._origin(Path(tmpdir) / "shop")
            webroot = Path(tmpdir) / "webroot"

            written = deploy_resources(origin, webroot, excluded_extensions=(".py",))

            assert (webroot / "index.html").read_text() == "shop"
            assert (webroot / "css" / "s.css").read_text() == "body {}"
            assert not (webroot / "tool.py").exists()
            assert len(written) == 2

    def test_existing_destination_without_overlay(self):
        """Copying onto an existing root without overlay should fail."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = self._origin(Path(tmpdir) / "shop")
            webroot = Path(tmpdir) / "webroot"
            webroot.mkdir()

            with pytest.raises(ResourceIOError, match="already exists"):
                deploy_resources(origin, webroot, overlay=False)

    def test_upward_subtree_rejected(self):
        """Should refuse a subtree that climbs out of the directory origin."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = self._origin(Path(tmpdir) / "shop")

            with pytest.raises(PathContainmentError):
                deploy_resources(origin, Path(tmpdir) / "webroot", subtree="../../etc")

    def test_remove_is_noop(self):
        """Resources copied from directories should not be retracted."""
        with tempfile.TemporaryDirectory() as tmpdir:
            origin = self._origin(Path(tmpdir) / "shop")
            webroot = Path(tmpdir) / "webroot"
            deploy_resources(origin, webroot)

            assert remove_resources(origin, webroot) == []
            assert (webroot / "index.html").exists()

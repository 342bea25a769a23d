import tempfile
import unittest
from pathlib import Path

from s3_admin.models import DownloadedObject
from s3_admin.transfers import (
    DirectoryDownloadSink,
    UploadFile,
    collect_upload_files,
    path_depth,
    upload_key,
    validate_path_depths,
)


class UploadHelpersTests(unittest.TestCase):
    def test_upload_key_prefers_relative_path(self):
        self.assertEqual("docs/a.txt", upload_key("docs/", UploadFile(name="a.txt", data=b"")))
        self.assertEqual(
            "docs/dir/a.txt",
            upload_key("docs/", UploadFile(name="a.txt", data=b"", relative_path="dir/a.txt")),
        )
        self.assertEqual("a.txt", upload_key("", UploadFile(name="a.txt", data=b"")))

    def test_path_depth_counts_segments(self):
        self.assertEqual(0, path_depth(""))
        self.assertEqual(1, path_depth("a.txt"))
        self.assertEqual(3, path_depth("a/b/c.txt"))
        self.assertEqual(2, path_depth("/a//b/"))

    def test_validate_path_depths(self):
        files = [
            UploadFile(name="c", data=b"", relative_path="a/b/c"),
            UploadFile(name="plain", data=b""),
        ]
        self.assertTrue(validate_path_depths(files, 3))
        self.assertFalse(validate_path_depths(files, 2))


class CollectUploadFilesTests(unittest.TestCase):
    def test_collects_files_and_directories_with_relative_paths(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "notes.txt").write_text("hi", encoding="utf-8")
            album = root / "album"
            (album / "2024").mkdir(parents=True)
            (album / "cover.png").write_bytes(b"png")
            (album / "2024" / "a.jpg").write_bytes(b"jpg")

            files = collect_upload_files([root / "notes.txt", album], max_depth=3)

            by_name = {f.name: f for f in files}
            self.assertIsNone(by_name["notes.txt"].relative_path)
            self.assertEqual(b"hi", by_name["notes.txt"].data)
            self.assertEqual("text/plain", by_name["notes.txt"].content_type)
            self.assertEqual("album/cover.png", by_name["cover.png"].relative_path)
            self.assertEqual("album/2024/a.jpg", by_name["a.jpg"].relative_path)
            self.assertTrue(validate_path_depths(files, 3))

    def test_skips_directories_beyond_depth(self):
        with tempfile.TemporaryDirectory() as tmp:
            album = Path(tmp) / "album"
            (album / "deep").mkdir(parents=True)
            (album / "top.txt").write_text("x", encoding="utf-8")
            (album / "deep" / "hidden.txt").write_text("x", encoding="utf-8")

            files = collect_upload_files([album], max_depth=2)

            self.assertEqual(["album/top.txt"], [f.relative_path for f in files])

    def test_missing_paths_are_skipped(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual([], collect_upload_files([Path(tmp) / "missing"]))


class DirectoryDownloadSinkTests(unittest.TestCase):
    def test_writes_object_under_filename(self):
        with tempfile.TemporaryDirectory() as tmp:
            sink = DirectoryDownloadSink(Path(tmp) / "downloads")

            destination = sink("a.txt", DownloadedObject(key="dir/a.txt", data=b"data"))

            self.assertEqual(b"data", destination.read_bytes())
            self.assertEqual(Path(tmp) / "downloads" / "a.txt", destination)


if __name__ == "__main__":
    unittest.main()

import io
import tempfile
import unittest

from fastapi import UploadFile

from mediabot.errors import FileTooLarge
from mediabot.relay.workspace import WorkspaceManager
from mediabot.web.uploads import format_size, stage_upload


def upload(name: str, data: bytes) -> UploadFile:
    # No size: the client did not send Content-Length for the part.
    return UploadFile(file=io.BytesIO(data), filename=name)


class TestStageUpload(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._root = tempfile.TemporaryDirectory()
        self.manager = WorkspaceManager(root=self._root.name)
        self.workspace = self.manager.acquire()

    def tearDown(self):
        self._root.cleanup()

    async def test_streams_part_into_workspace(self):
        data = b"\x89PNG" + b"\0" * 60
        part = upload("holiday photo.png", data)
        self.assertIsNone(part.size)

        staged = await stage_upload(self.workspace, 3, part, max_size=1024, chunk_size=16)

        self.assertEqual(staged.original_name, "holiday photo.png")
        self.assertEqual(staged.path, self.workspace.path / "0003.png")
        self.assertEqual(staged.size, len(data))
        self.assertEqual(staged.path.read_bytes(), data)
        self.assertTrue(part.file.closed)

    async def test_size_limit_enforced_while_streaming(self):
        part = upload("big.mp4", b"x" * 100)
        self.assertIsNone(part.size)

        with self.assertRaises(FileTooLarge) as cm:
            await stage_upload(self.workspace, 0, part, max_size=40, chunk_size=16)

        self.assertIn("big.mp4", cm.exception.user_message)
        self.assertTrue(part.file.closed)
        written = self.workspace.path / "0000.mp4"
        self.assertLessEqual(written.stat().st_size, 40)

    async def test_exact_limit_is_accepted(self):
        staged = await stage_upload(self.workspace, 0, upload("a.bin", b"x" * 32), max_size=32, chunk_size=16)
        self.assertEqual(staged.size, 32)

    async def test_missing_filename_gets_placeholder(self):
        staged = await stage_upload(self.workspace, 1, upload("", b"data"), max_size=1024)
        self.assertEqual(staged.original_name, "file-2")
        self.assertEqual(staged.path.name, "0001")


class TestFormatSize(unittest.TestCase):
    def test_units(self):
        self.assertEqual(format_size(512), "512 Bytes")
        self.assertEqual(format_size(2048), "2 KB")
        self.assertEqual(format_size(25 * 1024 * 1024), "25 MB")


if __name__ == "__main__":
    unittest.main()

import os
import tempfile
import unittest

from todo_report.errors import PersistenceError
from todo_report.storage import persist_report


class StorageTests(unittest.TestCase):
    def test_creates_missing_directory_and_writes_bytes(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            output_dir = os.path.join(root, "nested", "pdfs")

            path = persist_report(output_dir, "todos-20260115-103005.pdf", b"%PDF-data")

            self.assertEqual(path, os.path.join(output_dir, "todos-20260115-103005.pdf"))
            with open(path, "rb") as handle:
                self.assertEqual(handle.read(), b"%PDF-data")

    def test_write_failure_raises_persistence_error(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            blocker = os.path.join(root, "not-a-dir")
            with open(blocker, "wb") as handle:
                handle.write(b"")

            with self.assertRaises(PersistenceError):
                persist_report(blocker, "todos.pdf", b"%PDF")


if __name__ == "__main__":
    unittest.main()

import io
import unittest
from unittest.mock import patch

from streamchat.utils import PasteGuard


class TestPasteGuard(unittest.TestCase):
    def test_disabled_returns_line(self):
        guard = PasteGuard(0, stream=io.StringIO("more\n"))
        self.assertEqual(guard.collect("first"), "first")

    def test_unselectable_stream_returns_line(self):
        """StringIO has no fileno(), so there is nothing to drain"""
        guard = PasteGuard(60, stream=io.StringIO("more\n"))
        self.assertEqual(guard.collect("first"), "first")

    def test_pending_lines_are_merged(self):
        stream = io.StringIO("second\r\nthird\n")
        guard = PasteGuard(60, stream=stream)
        readiness = iter([True, True, True, False])

        with patch.object(PasteGuard, "_ready", side_effect=lambda timeout: next(readiness)):
            self.assertEqual(guard.collect("first"), "first\nsecond\nthird")

    def test_bracketed_paste_markers_removed(self):
        guard = PasteGuard(0)
        self.assertEqual(guard.collect("\x1b[200~hello\x1b[201~"), "hello")


if __name__ == "__main__":
    unittest.main()

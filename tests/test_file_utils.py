import tempfile
import unittest
from pathlib import Path

from labdash.core.filesystem_utils import build_docs_tree, read_doc_text, safe_relative_path


class SafeRelativePathTests(unittest.TestCase):
    def test_resolves_inside_base(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            target = safe_relative_path(base, "guide/setup.md")
            self.assertEqual(target, base.resolve() / "guide" / "setup.md")

    def test_rejects_escapes(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertIsNone(safe_relative_path(tmp, "../etc/passwd"))
            self.assertIsNone(safe_relative_path(tmp, "guide/../../x.md"))
            self.assertIsNone(safe_relative_path(tmp, ""))


class DocsTreeTests(unittest.TestCase):
    def test_tree_lists_markdown_dirs_first(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            (base / "guide" / "deep").mkdir(parents=True)
            (base / "empty").mkdir()
            (base / ".hidden").mkdir()
            (base / "README.md").write_text("# Lab", encoding="utf-8")
            (base / "notes.txt").write_text("skip", encoding="utf-8")
            (base / "guide" / "setup.md").write_text("setup", encoding="utf-8")
            (base / "guide" / "deep" / "gpu.md").write_text("gpu", encoding="utf-8")
            (base / ".hidden" / "secret.md").write_text("x", encoding="utf-8")

            tree = build_docs_tree(base, 2)

        self.assertEqual([node["name"] for node in tree], ["guide", "README.md"])
        guide = tree[0]
        self.assertEqual(guide["type"], "dir")
        self.assertEqual(guide["path"], "guide")
        self.assertEqual(guide["children"], [{"name": "setup.md", "path": "guide/setup.md", "type": "file"}])

    def test_depth_one_lists_root_files_only(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            (base / "guide").mkdir()
            (base / "guide" / "setup.md").write_text("setup", encoding="utf-8")
            (base / "index.md").write_text("home", encoding="utf-8")
            tree = build_docs_tree(base, 1)
        self.assertEqual(tree, [{"name": "index.md", "path": "index.md", "type": "file"}])

    def test_read_doc_text_missing(self):
        self.assertIsNone(read_doc_text(Path("/nonexistent/doc.md")))


if __name__ == "__main__":
    unittest.main()

"""Tests for the unified diff helpers."""

from portsync.utils.diff_parser import changed_lines, count_changes, hunk_context, split_hunks

DIFF = """diff --git a/src/llm.py b/src/llm.py
--- a/src/llm.py
+++ b/src/llm.py
@@ -1,3 +1,3 @@
 import os
-TIMEOUT = 10
+TIMEOUT = 30
@@ -20,4 +20,6 @@ class Client:
     def chat(self):
-        pass
+        self.retry()
+        return self.send()
"""


def test_split_hunks_drops_file_header():
    hunks = split_hunks(DIFF)
    assert len(hunks) == 2
    assert hunks[0].startswith("@@ -1,3 +1,3 @@")
    assert "+++ b/src/llm.py" not in hunks[0]


def test_count_changes():
    assert count_changes(split_hunks(DIFF)) == (3, 2)


def test_changed_lines_exclude_context():
    lines = changed_lines(split_hunks(DIFF))
    assert " import os" not in lines
    assert "+TIMEOUT = 30" in lines
    assert "-        pass" in lines


def test_hunk_context():
    hunks = split_hunks(DIFF)
    assert hunk_context(hunks[0]) == ""
    assert hunk_context(hunks[1]) == "class Client:"


def test_no_hunks():
    assert split_hunks("") == []
    assert split_hunks("Binary files a/logo.png and b/logo.png differ\n") == []
    assert count_changes([]) == (0, 0)

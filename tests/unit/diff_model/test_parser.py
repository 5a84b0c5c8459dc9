"""Unified-diff parsing tests.

Covers boundary splitting, identity and label extraction, change counting,
and graceful degradation on malformed markers.
"""

from __future__ import annotations

import unittest

from lazydiff.diff_model import (
    DiffIdentity,
    FileDiffRecord,
    count_changes,
    parse_boundary_path,
    parse_diff,
    parse_index_hashes,
)

TWO_FILE_DIFF = (
    "diff --git a/src/a.rs b/src/a.rs\n"
    "--- a/src/a.rs\n"
    "+++ b/src/a.rs\n"
    "@@ -1,1 +1,1 @@\n"
    "-old\n"
    "+new\n"
    "diff --git a/src/b.rs b/src/b.rs\n"
    "--- a/src/b.rs\n"
    "+++ b/src/b.rs\n"
    "@@ -1,1 +1,1 @@\n"
    "-x\n"
    "+y\n"
)

INDEXED_DIFF = (
    "diff --git a/README.md b/README.md\n"
    "index 3b18e51..a9c2f04 100644\n"
    "--- a/README.md\n"
    "+++ b/README.md\n"
    "@@ -1,3 +1,4 @@\n"
    " # Title\n"
    "-old line\n"
    "+new line\n"
    "+another line\n"
    " tail\n"
)


class ParseDiffTests(unittest.TestCase):
    def test_two_file_scenario_parses_two_records_with_single_line_changes(self) -> None:
        records = parse_diff(TWO_FILE_DIFF)

        self.assertEqual([record.path for record in records], ["src/a.rs", "src/b.rs"])
        for record in records:
            self.assertEqual(record.added_count, 1)
            self.assertEqual(record.removed_count, 1)

    def test_each_record_keeps_its_block_verbatim_including_marker(self) -> None:
        records = parse_diff(TWO_FILE_DIFF)

        self.assertTrue(records[0].raw_content.startswith("diff --git a/src/a.rs b/src/a.rs\n"))
        self.assertTrue(records[0].raw_content.endswith("+new\n"))
        self.assertEqual("".join(record.raw_content for record in records), TWO_FILE_DIFF)

    def test_index_line_attaches_identity(self) -> None:
        [record] = parse_diff(INDEXED_DIFF)

        self.assertEqual(record.identity, DiffIdentity("3b18e51", "a9c2f04", "README.md"))
        self.assertEqual(record.added_count, 2)
        self.assertEqual(record.removed_count, 1)

    def test_malformed_index_line_leaves_identity_unset(self) -> None:
        text = INDEXED_DIFF.replace("index 3b18e51..a9c2f04 100644", "index garbage")

        [record] = parse_diff(text)

        self.assertIsNone(record.identity)
        self.assertEqual(record.added_count, 2)

    def test_labels_are_read_from_header(self) -> None:
        text = (
            "diff --git a/new.txt b/new.txt\n"
            "new file mode 100644\n"
            "--- /dev/null\n"
            "+++ b/new.txt\n"
            "@@ -0,0 +1 @@\n"
            "+hello\n"
        )

        [record] = parse_diff(text)

        self.assertEqual(record.old_label, "/dev/null")
        self.assertEqual(record.new_label, "b/new.txt")
        self.assertEqual((record.added_count, record.removed_count), (1, 0))

    def test_text_without_markers_yields_no_records(self) -> None:
        self.assertEqual(parse_diff(""), [])
        self.assertEqual(parse_diff("just some text\nwith lines\n"), [])

    def test_short_marker_opens_no_record_and_drops_following_lines(self) -> None:
        text = "diff --git onlyone\n+orphan\n" + TWO_FILE_DIFF

        records = parse_diff(text)

        self.assertEqual([record.path for record in records], ["src/a.rs", "src/b.rs"])
        self.assertNotIn("+orphan", records[0].raw_content)

    def test_concatenated_inputs_parse_to_concatenated_records(self) -> None:
        combined = parse_diff(TWO_FILE_DIFF + INDEXED_DIFF)

        self.assertEqual(combined, parse_diff(TWO_FILE_DIFF) + parse_diff(INDEXED_DIFF))

    def test_input_order_is_preserved(self) -> None:
        text = TWO_FILE_DIFF.replace("src/a.rs", "zzz.rs").replace("src/b.rs", "aaa.rs")

        records = parse_diff(text)

        self.assertEqual([record.path for record in records], ["zzz.rs", "aaa.rs"])

    def test_missing_trailing_newline_still_terminates_last_line(self) -> None:
        records = parse_diff(TWO_FILE_DIFF.rstrip("\n"))

        self.assertTrue(records[-1].raw_content.endswith("+y\n"))


class CountChangesTests(unittest.TestCase):
    def test_marker_lines_are_excluded_but_hunk_lines_that_look_like_markers_count(self) -> None:
        text = (
            "diff --git a/notes.md b/notes.md\n"
            "--- a/notes.md\n"
            "+++ b/notes.md\n"
            "@@ -1,2 +1,2 @@\n"
            "--- removed rule\n"
            "+++ added rule\n"
        )

        self.assertEqual(count_changes(text), (1, 1))

    def test_from_content_computes_counts_and_default_labels(self) -> None:
        record = FileDiffRecord.from_content("pkg/mod.py", "@@ -1 +1,2 @@\n-a\n+b\n+c\n")

        self.assertEqual((record.added_count, record.removed_count), (2, 1))
        self.assertEqual(record.old_label, "a/pkg/mod.py")
        self.assertEqual(record.new_label, "b/pkg/mod.py")


class HeaderFieldTests(unittest.TestCase):
    def test_boundary_path_strips_a_prefix(self) -> None:
        self.assertEqual(parse_boundary_path("diff --git a/src/x.py b/src/x.py"), "src/x.py")

    def test_boundary_path_recovers_spaces_when_sides_match(self) -> None:
        self.assertEqual(
            parse_boundary_path("diff --git a/docs/my file.md b/docs/my file.md"),
            "docs/my file.md",
        )

    def test_boundary_path_uses_old_side_for_renames(self) -> None:
        self.assertEqual(parse_boundary_path("diff --git a/old.py b/new.py"), "old.py")

    def test_boundary_path_rejects_short_markers(self) -> None:
        self.assertIsNone(parse_boundary_path("diff --git a/x"))

    def test_index_hashes_ignore_mode(self) -> None:
        self.assertEqual(parse_index_hashes("index abc123..def456 100755"), ("abc123", "def456"))
        self.assertEqual(parse_index_hashes("index abc123..def456"), ("abc123", "def456"))
        self.assertIsNone(parse_index_hashes("index abc123"))


if __name__ == "__main__":
    unittest.main()

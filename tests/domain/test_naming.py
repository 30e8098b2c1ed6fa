"""Tests for next-instance naming and checklist rewriting."""

import pytest

from recurctl.domain.naming import next_instance_name, sanitize_file_name, uncheck_subtasks


class TestNextInstanceName:
    @pytest.mark.parametrize(
        ("original", "expected"),
        [
            ("Water plants 2024-03-01", "Water plants 2024-03-02"),
            ("Report 2024/03/01", "Report 2024-03-02"),
            ("Standup 01-03-2024", "Standup 2024-03-02"),
            ("Review 01/03/2024 notes", "Review 2024-03-02 notes"),
        ],
    )
    def test_replaces_embedded_date(self, original: str, expected: str) -> None:
        assert next_instance_name(original, "2024-03-02") == expected

    def test_only_first_match_replaced(self) -> None:
        result = next_instance_name("2024-03-01 to 2024-03-05", "2024-03-02")
        assert result == "2024-03-02 to 2024-03-05"

    def test_layout_order_beats_position(self) -> None:
        result = next_instance_name("01-03-2024 then 2024-03-05", "2024-03-02")
        assert result == "01-03-2024 then 2024-03-02"

    def test_appends_when_no_date(self) -> None:
        assert next_instance_name("Water plants", "2024-03-02") == "Water plants 2024-03-02"


class TestSanitizeFileName:
    def test_illegal_characters(self) -> None:
        assert sanitize_file_name('a:b/c?d*e"f<g>h|i\\j') == "a-b-c-d-e-f-g-h-i-j"

    def test_control_characters(self) -> None:
        assert sanitize_file_name("a\x00b\x1fc") == "a-b-c"

    def test_collapses_whitespace(self) -> None:
        assert sanitize_file_name("  Water   plants  2024 ") == "Water plants 2024"

    def test_tab_is_a_control_character(self) -> None:
        assert sanitize_file_name("Water plants\t2024") == "Water plants-2024"

    def test_slashed_due_date(self) -> None:
        name = next_instance_name("Task", "2024/03/02")
        assert sanitize_file_name(name) == "Task 2024-03-02"


class TestUncheckSubtasks:
    def test_resets_checked_items(self) -> None:
        body = "- [x] one\n- [ ] two\n- [X] three"
        assert uncheck_subtasks(body) == "- [ ] one\n- [ ] two\n- [ ] three"

    def test_resets_custom_states(self) -> None:
        body = "- [-] cancelled\n- [/] half\n- [>] deferred\n- [ ] open"
        assert uncheck_subtasks(body) == "- [ ] cancelled\n- [ ] half\n- [ ] deferred\n- [ ] open"

    def test_single_character_links_are_not_tasks(self) -> None:
        assert uncheck_subtasks("- [1](notes.md) see") == "- [1](notes.md) see"

    def test_keeps_indentation_and_markers(self) -> None:
        body = "  * [x] nested\n\t+ [X] tabbed\n1. [x] numbered"
        assert uncheck_subtasks(body) == "  * [ ] nested\n\t+ [ ] tabbed\n1. [ ] numbered"

    def test_leaves_other_lines_alone(self) -> None:
        body = "# Heading\nplain [x] text\n- not a task\n\n- [x] done"
        assert uncheck_subtasks(body) == "# Heading\nplain [x] text\n- not a task\n\n- [ ] done"

    def test_preserves_crlf(self) -> None:
        assert uncheck_subtasks("- [x] a\r\nb\r\n") == "- [ ] a\r\nb\r\n"

    def test_empty_body(self) -> None:
        assert uncheck_subtasks("") == ""

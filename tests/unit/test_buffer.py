"""Unit tests for MemoryBuffer."""

import pytest

from orgtree.services.buffer import MemoryBuffer, TextBuffer


class TestMemoryBuffer:
    """Tests for the in-memory text buffer."""

    def test_satisfies_protocol(self):
        assert isinstance(MemoryBuffer(), TextBuffer)

    def test_from_text_drops_final_newline(self):
        buf = MemoryBuffer.from_text("* A\nbody\n")

        assert buf.lines == ["* A", "body"]
        assert buf.text() == "* A\nbody\n"

    def test_append_lines(self):
        buf = MemoryBuffer(["one", "four"])

        buf.append_lines(1, ["two", "three"])
        buf.append_lines(0, ["zero"])

        assert buf.lines == ["zero", "one", "two", "three", "four"]

    def test_set_and_delete(self):
        buf = MemoryBuffer(["a", "b", "c"])

        buf.set_line(2, "B")
        buf.delete_line(1)

        assert buf.lines == ["B", "c"]
        assert buf.line_count() == 2

    def test_out_of_range(self):
        buf = MemoryBuffer(["a"])

        with pytest.raises(IndexError):
            buf.get_line(2)
        with pytest.raises(IndexError):
            buf.get_line(0)
        with pytest.raises(IndexError):
            buf.append_lines(3, ["x"])

    def test_delete_keeps_cursor_in_bounds(self):
        buf = MemoryBuffer(["a", "b"])
        buf.restore_view((2, 1))

        buf.delete_line(2)

        assert buf.save_view() == (1, 1)

    def test_buffer_ids_are_unique(self):
        assert MemoryBuffer().current_buffer_id() != MemoryBuffer().current_buffer_id()

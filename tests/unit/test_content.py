"""Unit tests for line classification."""

from orgtree.parser.content import ClassifyContext, ContentKind, classify_line, match_headline


class TestMatchHeadline:
    """Tests for match_headline."""

    def test_levels(self):
        assert match_headline("* One") == 1
        assert match_headline("*** Three") == 3

    def test_bare_stars(self):
        """Test a line of only stars is still a headline."""
        assert match_headline("**") == 2

    def test_bold_text_is_not_a_headline(self):
        assert match_headline("*bold* text") is None

    def test_indented_stars_are_not_a_headline(self):
        assert match_headline("  * item") is None


class TestClassifyLine:
    """Tests for classify_line."""

    def test_planning_line_in_first_slot(self):
        """Test a planning line directly below the title."""
        content = classify_line("  SCHEDULED: <2024-01-01 Mon>", 2, ClassifyContext(position=1))

        assert content.kind is ContentKind.PLANNING
        assert content.is_planning()
        assert content.dates[0].is_scheduled()
        assert content.range.start_line == 2
        assert content.range.end_col == len("  SCHEDULED: <2024-01-01 Mon>")

    def test_planning_line_out_of_slot_is_generic(self):
        """Test planning keywords further down are plain text."""
        content = classify_line("SCHEDULED: <2024-01-01 Mon>", 3, ClassifyContext(position=2))

        assert content.kind is ContentKind.GENERIC
        assert content.dates[0].is_none()

    def test_planning_keyword_without_date_is_generic(self):
        content = classify_line("DEADLINE: soon", 2, ClassifyContext(position=1))

        assert content.kind is ContentKind.GENERIC

    def test_planning_not_allowed_for_root(self):
        """Test lines before the first headline never become planning."""
        context = ClassifyContext(position=1, allow_planning=False)
        content = classify_line("SCHEDULED: <2024-01-01 Mon>", 1, context)

        assert content.kind is ContentKind.GENERIC

    def test_properties_start_first_slot(self):
        content = classify_line("  :PROPERTIES:", 2, ClassifyContext(position=1))

        assert content.is_properties_start()
        assert content.is_drawer()

    def test_properties_start_after_planning(self):
        context = ClassifyContext(position=2, first_is_planning=True)

        assert classify_line(":PROPERTIES:", 3, context).is_properties_start()

    def test_properties_start_out_of_slot_is_generic(self):
        context = ClassifyContext(position=2, first_is_planning=False)

        assert classify_line(":PROPERTIES:", 3, context).kind is ContentKind.GENERIC

    def test_property_inside_drawer(self):
        """Test property lines carry their name and value."""
        context = ClassifyContext(position=2, in_property_drawer=True)
        content = classify_line("  :CATEGORY: work", 3, context)

        assert content.kind is ContentKind.PROPERTY
        assert content.drawer_properties == {"CATEGORY": "work"}
        assert content.indent == "  "

    def test_property_without_value(self):
        context = ClassifyContext(position=2, in_property_drawer=True)
        content = classify_line(":EMPTY:", 3, context)

        assert content.drawer_properties == {"EMPTY": ""}

    def test_property_dates_are_plain(self):
        """Test timestamps inside a drawer never take a planning type."""
        context = ClassifyContext(position=2, in_property_drawer=True)
        content = classify_line(":CREATED: [2024-01-01 Mon 10:00]", 3, context)

        assert len(content.dates) == 1
        assert content.dates[0].is_none()

    def test_drawer_end(self):
        context = ClassifyContext(position=3, in_property_drawer=True)
        content = classify_line("  :END:", 4, context)

        assert content.is_parent_end()

    def test_property_syntax_outside_drawer_is_generic(self):
        content = classify_line(":CATEGORY: work", 5, ClassifyContext(position=4))

        assert content.kind is ContentKind.GENERIC
        assert content.drawer_properties is None

    def test_generic_line_dates(self):
        content = classify_line("Call Bob <2024-01-04 Thu>", 5, ClassifyContext(position=3))

        assert content.is_content()
        assert not content.is_headline()
        assert content.dates[0].day == 4

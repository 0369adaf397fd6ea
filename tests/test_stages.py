"""Tests for blogforge.agents.stages."""

from blogforge.agents.stages import STAGES, strip_editor_notes
from blogforge.models import BlogRequest, Stage


class TestStripEditorNotes:
    def test_removes_label_and_notes(self):
        text = "EDITED CONTENT:\n# Post\n\nBody\n\nEDITOR NOTES:\n- fixed grammar"

        assert strip_editor_notes(text) == "# Post\n\nBody"

    def test_markers_case_insensitive(self):
        text = "Edited Content: Body text\nEditor Notes: none"

        assert strip_editor_notes(text) == "Body text"

    def test_text_without_markers_is_only_trimmed(self):
        assert strip_editor_notes("\n# Post\nBody\n") == "# Post\nBody"

    def test_label_only_dropped_at_start(self):
        text = "Body mentions EDITED CONTENT: in passing"

        assert strip_editor_notes(text) == text


class TestStageTable:
    def test_stages_in_fixed_order(self):
        assert [d.stage for d in STAGES] == [
            Stage.RESEARCH,
            Stage.WRITE,
            Stage.EDIT,
            Stage.LINT,
            Stage.SEO,
        ]

    def test_only_edit_postprocesses(self):
        text = "EDITED CONTENT:\nX\nEDITOR NOTES:\nY"
        outputs = {d.stage: d.postprocess(text) for d in STAGES}

        assert outputs[Stage.EDIT] == "X"
        assert all(v == text for s, v in outputs.items() if s is not Stage.EDIT)

    def test_vars_builders(self):
        request = BlogRequest(topic="T", description="D", target_audience="A", word_count=5, tone="Casual")
        built = {d.stage: d.build_vars(request, "PREV") for d in STAGES}

        assert built[Stage.RESEARCH] == {"topic": "T", "description": "D", "audience": "A"}
        assert built[Stage.WRITE] == {"outline": "PREV", "tone": "Casual", "word_count": "5"}
        assert built[Stage.EDIT] == {"draft": "PREV"}
        assert built[Stage.LINT] == {"content": "PREV"}
        assert built[Stage.SEO] == {"content": "PREV", "topic": "T"}

    def test_seo_label(self):
        assert STAGES[4].label == "SEO"
        assert STAGES[0].label == "Research"

"""Tests for the merge planner."""

from bigpdfassembler.services.merge_planner import PlannedPage, plan_merge
from bigpdfassembler.services.page_model import RotationDirection, SourceDocument


def _doc(name, pages):
    return SourceDocument(name=name, page_count=pages, doc_id=name)


class TestPlanMerge:
    def test_all_selected_in_document_order(self):
        plan = plan_merge([_doc("a", 2), _doc("b", 1)])
        assert list(plan) == [
            PlannedPage("a", 0, 0),
            PlannedPage("a", 1, 0),
            PlannedPage("b", 0, 0),
        ]

    def test_deselected_pages_skipped(self):
        a = _doc("a", 3)
        a.page_set.toggle_selection(1)
        plan = plan_merge([a])
        assert [p.page_index for p in plan] == [0, 2]

    def test_rotation_carried(self):
        a = _doc("a", 2)
        a.page_set.rotate(1, RotationDirection.COUNTERCLOCKWISE)
        plan = plan_merge([a])
        assert [p.rotation for p in plan] == [0, 270]

    def test_document_without_selection_contributes_nothing(self):
        a = _doc("a", 2)
        a.page_set.set_all_selection(False)
        plan = plan_merge([a, _doc("b", 1)])
        assert [p.document_id for p in plan] == ["b"]

    def test_empty_plan(self):
        assert len(plan_merge([])) == 0

    def test_caller_order_respected(self):
        a, b = _doc("a", 1), _doc("b", 1)
        assert [p.document_id for p in plan_merge([b, a])] == ["b", "a"]

    def test_deterministic(self):
        a, b = _doc("a", 3), _doc("b", 2)
        a.page_set.toggle_selection(0)
        b.page_set.rotate(1, RotationDirection.CLOCKWISE)
        assert plan_merge([a, b]) == plan_merge([a, b])

    def test_by_document_runs(self):
        a, b = _doc("a", 2), _doc("b", 3)
        b.page_set.toggle_selection(1)
        runs = plan_merge([a, b]).by_document()
        assert [doc_id for doc_id, _run in runs] == ["a", "b"]
        assert [p.page_index for p in runs[1][1]] == [0, 2]

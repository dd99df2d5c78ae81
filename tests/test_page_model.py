"""Tests for page_model module (PageSet, SourceDocument, DocumentQueue)."""

import pytest

from bigpdfassembler.constants import VALID_ROTATIONS
from bigpdfassembler.services.page_model import (
    DocumentQueue,
    PageSet,
    PageState,
    RotationDirection,
    SourceDocument,
    normalize_rotation,
    reorder,
)
from bigpdfassembler.utils.exceptions import PageIndexError


class TestNormalizeRotation:
    def test_canonical_values_unchanged(self):
        for value in VALID_ROTATIONS:
            assert normalize_rotation(value) == value

    def test_wraps_full_turns(self):
        assert normalize_rotation(360) == 0
        assert normalize_rotation(450) == 90

    def test_negative_wraps_upward(self):
        assert normalize_rotation(-90) == 270
        assert normalize_rotation(-270) == 90

    def test_non_multiple_snaps_to_quarter_turn(self):
        assert normalize_rotation(100) == 90
        assert normalize_rotation(350) == 0


class TestPageState:
    def test_default_values(self):
        ps = PageState(index=0)
        assert ps.selected is True
        assert ps.rotation == 0
        assert ps.page_number == 1

    def test_rotation_normalization(self):
        ps = PageState(index=0, rotation=-90)
        assert ps.rotation == 270

    def test_rotate_right(self):
        ps = PageState(index=0)
        ps.rotate_right()
        assert ps.rotation == 90
        ps.rotate_right()
        assert ps.rotation == 180

    def test_rotate_left(self):
        ps = PageState(index=0)
        ps.rotate_left()
        assert ps.rotation == 270


class TestPageSet:
    def test_initialize_all_selected_unrotated(self):
        page_set = PageSet(4)
        assert len(page_set) == 4
        assert all(p.selected for p in page_set)
        assert all(p.rotation == 0 for p in page_set)

    def test_empty_document(self):
        page_set = PageSet(0)
        assert len(page_set) == 0
        assert page_set.selected_indices() == []

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            PageSet(-1)

    def test_toggle_selection_flips(self):
        page_set = PageSet(3)
        assert page_set.toggle_selection(1) is False
        assert page_set.selected_indices() == [0, 2]
        assert page_set.toggle_selection(1) is True
        assert page_set.selected_indices() == [0, 1, 2]

    def test_toggle_out_of_range(self):
        page_set = PageSet(3)
        with pytest.raises(PageIndexError):
            page_set.toggle_selection(3)
        with pytest.raises(IndexError):
            page_set.toggle_selection(-1)

    def test_set_all_selection(self):
        page_set = PageSet(3)
        page_set.set_all_selection(False)
        assert page_set.selected_indices() == []
        page_set.set_all_selection(True)
        assert page_set.selected_indices() == [0, 1, 2]

    def test_select_pages_exact(self):
        page_set = PageSet(5)
        page_set.select_pages([4, 1])
        assert page_set.selected_indices() == [1, 4]

    def test_select_pages_out_of_range(self):
        page_set = PageSet(2)
        with pytest.raises(PageIndexError):
            page_set.select_pages([0, 2])
        # Nothing changed
        assert page_set.selected_indices() == [0, 1]

    def test_four_clockwise_rotations_return_to_zero(self):
        page_set = PageSet(1)
        results = [page_set.rotate(0, RotationDirection.CLOCKWISE) for _ in range(4)]
        assert results == [90, 180, 270, 0]

    def test_one_counterclockwise_rotation(self):
        page_set = PageSet(1)
        assert page_set.rotate(0, RotationDirection.COUNTERCLOCKWISE) == 270

    def test_rotation_stays_canonical(self):
        page_set = PageSet(1)
        for direction in [RotationDirection.COUNTERCLOCKWISE] * 7 + [RotationDirection.CLOCKWISE]:
            assert page_set.rotate(0, direction) in VALID_ROTATIONS

    def test_rotate_out_of_range(self):
        with pytest.raises(PageIndexError):
            PageSet(2).rotate(5, RotationDirection.CLOCKWISE)

    def test_snapshot_is_independent(self):
        page_set = PageSet(3)
        snap = page_set.snapshot()
        page_set.toggle_selection(0)
        page_set.rotate(1, RotationDirection.CLOCKWISE)
        assert snap.selected_indices() == [0, 1, 2]
        assert snap[1].rotation == 0
        assert snap != page_set


class TestSourceDocument:
    def test_creates_page_set(self):
        doc = SourceDocument(name="a.pdf", page_count=3)
        assert doc.page_set.page_count == 3

    def test_mismatched_page_set_rejected(self):
        with pytest.raises(ValueError):
            SourceDocument(name="a.pdf", page_count=3, page_set=PageSet(2))

    def test_stem_strips_extension(self):
        assert SourceDocument(name="report.PDF", page_count=1).stem == "report"
        assert SourceDocument(name="notes", page_count=1).stem == "notes"

    def test_read_bytes_prefers_payload(self):
        doc = SourceDocument(name="a.pdf", page_count=1, data=b"%PDF-")
        assert doc.read_bytes() == b"%PDF-"

    def test_read_bytes_from_path(self, tmp_path):
        path = tmp_path / "a.pdf"
        path.write_bytes(b"%PDF-1.7")
        doc = SourceDocument(name="a.pdf", page_count=1, path=str(path))
        assert doc.read_bytes() == b"%PDF-1.7"

    def test_snapshot_keeps_identity(self):
        doc = SourceDocument(name="a.pdf", page_count=2, position=3)
        snap = doc.snapshot()
        doc.page_set.toggle_selection(0)
        assert snap.doc_id == doc.doc_id
        assert snap.position == 3
        assert snap.page_set.selected_indices() == [0, 1]

    def test_ids_are_unique(self):
        a = SourceDocument(name="a.pdf", page_count=1)
        b = SourceDocument(name="a.pdf", page_count=1)
        assert a.doc_id != b.doc_id


class TestReorder:
    def test_move_forward(self):
        assert reorder(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]

    def test_move_backward(self):
        assert reorder(["a", "b", "c", "d"], 3, 1) == ["a", "d", "b", "c"]

    def test_same_position(self):
        assert reorder(["a", "b"], 1, 1) == ["a", "b"]

    def test_input_untouched(self):
        items = ["a", "b", "c"]
        reorder(items, 0, 2)
        assert items == ["a", "b", "c"]

    def test_out_of_range(self):
        with pytest.raises(PageIndexError):
            reorder(["a"], 0, 1)
        with pytest.raises(PageIndexError):
            reorder([], 0, 0)


class TestDocumentQueue:
    def _docs(self, *names):
        return [SourceDocument(name=n, page_count=1) for n in names]

    def test_positions_sequential(self):
        queue = DocumentQueue(self._docs("a", "b", "c"))
        assert [d.position for d in queue] == [0, 1, 2]

    def test_move_updates_order_and_positions(self):
        queue = DocumentQueue(self._docs("a", "b", "c"))
        queue.move(2, 0)
        assert [d.name for d in queue.ordered()] == ["c", "a", "b"]
        assert [d.position for d in queue] == [0, 1, 2]

    def test_remove(self):
        queue = DocumentQueue(self._docs("a", "b", "c"))
        removed = queue.remove(1)
        assert removed.name == "b"
        assert [d.name for d in queue] == ["a", "c"]
        assert queue[1].position == 1

    def test_remove_out_of_range(self):
        queue = DocumentQueue()
        with pytest.raises(PageIndexError):
            queue.remove(0)

    def test_ordered_is_copy(self):
        queue = DocumentQueue(self._docs("a", "b"))
        ordered = queue.ordered()
        ordered.pop()
        assert len(queue) == 2

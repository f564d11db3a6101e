"""
Annotation Store Tests

Tests for page-partitioned CRUD, boundary validation, selection and
change notification.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from takeoff.errors import ValidationError
from takeoff.geometry import (
    MarkerAnnotation,
    LineAnnotation,
    PolygonAnnotation,
    create_line_annotation,
    create_polygon_annotation,
    create_marker_annotation,
)
from takeoff.store import AnnotationStore, validate_annotation


def make_store():
    calls = []
    store = AnnotationStore(on_change=lambda: calls.append(1))
    return store, calls


def make_marker(annotation_id="m-1", page_number=1, x=0.5, y=0.5, **kwargs):
    return MarkerAnnotation(id=annotation_id, page_number=page_number, x=x, y=y, **kwargs)


class TestAnnotationStoreAdd:
    """Tests for add() and its validation."""

    def test_add_and_get(self):
        store, calls = make_store()
        marker = make_marker()
        store.add(marker)

        assert store.get("m-1") == marker
        assert store.get_by_page(1) == [marker]
        assert store.count == 1
        assert "m-1" in store
        assert len(calls) == 1
        print("  [PASS] Add places annotation in its page bucket")

    def test_pages_are_partitioned(self):
        store, _ = make_store()
        store.add(make_marker("a", page_number=2))
        store.add(make_marker("b", page_number=1))
        store.add(make_marker("c", page_number=2))

        assert [a.id for a in store.get_by_page(2)] == ["a", "c"]
        assert [a.id for a in store.get_by_page(1)] == ["b"]
        assert store.get_by_page(5) == []
        assert store.page_numbers() == [1, 2]
        assert [a.id for a in store.all_annotations()] == ["b", "a", "c"]
        print("  [PASS] Annotations partitioned by page in insertion order")

    def test_rejects_out_of_range_coordinates(self):
        store, calls = make_store()
        for x, y in [(1.2, 0.5), (0.5, -0.1), (float("nan"), 0.5)]:
            try:
                store.add(make_marker(x=x, y=y))
                assert False, f"Should have raised ValidationError for ({x}, {y})"
            except ValidationError:
                pass

        line = LineAnnotation(id="l", page_number=1, x=0.1, y=0.1, start=(0.1, 0.1), end=(1.5, 0.2))
        try:
            store.add(line)
            assert False, "Should have raised ValidationError for line endpoint"
        except ValidationError:
            pass

        assert store.count == 0
        assert calls == []
        print("  [PASS] Coordinates outside [0, 1] rejected")

    def test_rejects_small_polygon(self):
        store, _ = make_store()
        polygon = PolygonAnnotation(
            id="p", page_number=1, x=0.1, y=0.1, vertices=((0.1, 0.1), (0.2, 0.2)),
        )
        try:
            store.add(polygon)
            assert False, "Should have raised ValidationError"
        except ValidationError as e:
            assert "at least 3" in str(e)
        print("  [PASS] Polygon with fewer than 3 vertices rejected")

    def test_rejects_bad_page_number(self):
        store, _ = make_store()
        for page_number in [0, -1, 1.5, True]:
            try:
                store.add(make_marker(page_number=page_number))
                assert False, f"Should have raised ValidationError for page {page_number!r}"
            except ValidationError:
                pass
        print("  [PASS] Page number must be a positive integer")

    def test_rejects_duplicate_id(self):
        store, calls = make_store()
        store.add(make_marker("dup"))
        try:
            store.add(make_marker("dup", page_number=2))
            assert False, "Should have raised ValidationError"
        except ValidationError:
            pass
        assert store.count == 1
        assert len(calls) == 1
        print("  [PASS] Duplicate id rejected")

    def test_validate_annotation_accepts_factory_output(self):
        line = create_line_annotation(1, (0, 0), (1000, 800), 1000, 800)
        validate_annotation(line)
        polygon = create_polygon_annotation(1, [(0, 0), (10, 0), (10, 10)], 100, 100)
        validate_annotation(polygon)
        print("  [PASS] Factory output validates")


class TestAnnotationStoreMutations:
    """Tests for update, delete, clear and selection."""

    def test_update_merges_and_stamps(self):
        store, calls = make_store()
        marker = make_marker(notes="")
        store.add(marker)

        updated = store.update("m-1", notes="Check on site", label_id="label-doors")
        assert updated.notes == "Check on site"
        assert updated.label_id == "label-doors"
        assert updated.created_at == marker.created_at
        assert updated.updated_at >= marker.updated_at
        assert store.get("m-1") == updated
        assert len(calls) == 2
        print("  [PASS] Update merges fields and stamps updated_at")

    def test_update_unknown_id_is_noop(self):
        store, calls = make_store()
        assert store.update("missing", notes="x") is None
        assert calls == []
        print("  [PASS] Update of unknown id is a no-op")

    def test_update_validates_merged_result(self):
        store, calls = make_store()
        store.add(make_marker())

        try:
            store.update("m-1", x=2.0)
            assert False, "Should have raised ValidationError"
        except ValidationError:
            pass

        try:
            store.update("m-1", radius=3)
            assert False, "Should have raised ValidationError for unknown field"
        except ValidationError:
            pass

        assert store.get("m-1").x == 0.5
        assert len(calls) == 1
        print("  [PASS] Invalid update leaves record unchanged")

    def test_update_ignores_read_only_fields(self):
        store, _ = make_store()
        store.add(make_marker())
        updated = store.update("m-1", id="other", text="T")
        assert updated.id == "m-1"
        assert updated.text == "T"
        print("  [PASS] id and timestamps cannot be overwritten")

    def test_update_moves_page(self):
        store, _ = make_store()
        store.add(make_marker())
        store.update("m-1", page_number=3)
        assert store.get_by_page(1) == []
        assert [a.id for a in store.get_by_page(3)] == ["m-1"]
        print("  [PASS] Changing page number moves the annotation")

    def test_update_geometry_remeasures(self):
        store, _ = make_store()
        line = create_line_annotation(1, (0, 0), (300, 400), 1000, 1000, annotation_id="l-1")
        store.add(line)

        updated = store.update("l-1", canvas_size=(1000, 1000), end=(0.6, 0.8))
        assert abs(updated.line_length - 1000.0) < 1e-9
        assert (updated.x, updated.y) == (0.0, 0.0)

        polygon = create_polygon_annotation(
            1, [(0, 0), (100, 0), (100, 100)], 1000, 1000, annotation_id="p-1",
        )
        store.add(polygon)
        updated = store.update(
            "p-1", canvas_size=(1000, 1000),
            vertices=[[0.2, 0.2], [0.4, 0.2], [0.4, 0.4], [0.2, 0.4]],
        )
        assert abs(updated.polygon_area - 40000.0) < 1e-6
        assert (updated.x, updated.y) == (0.2, 0.2)
        assert isinstance(updated.vertices[0], tuple)
        print("  [PASS] Geometry edits re-derive pixel measurements")

    def test_update_geometry_requires_canvas_size(self):
        store, calls = make_store()
        store.add(create_line_annotation(1, (0, 0), (300, 400), 1000, 1000, annotation_id="l-1"))
        store.add(create_polygon_annotation(
            1, [(0, 0), (100, 0), (100, 100)], 1000, 1000, annotation_id="p-1",
        ))

        for annotation_id, changes in [
            ("l-1", {"end": (0.3, 0.4)}),
            ("l-1", {"start": (0.1, 0.1)}),
            ("p-1", {"vertices": [[0.2, 0.2], [0.4, 0.2], [0.4, 0.4]]}),
        ]:
            try:
                store.update(annotation_id, **changes)
                assert False, f"Should have raised ValidationError for {changes}"
            except ValidationError as e:
                assert "canvas size" in str(e)

        line = store.get("l-1")
        assert line.end == (0.3, 0.4)
        assert abs(line.line_length - 500.0) < 1e-9
        assert abs(store.get("p-1").polygon_area - 5000.0) < 1e-6
        assert len(calls) == 2, "Rejected edits do not notify"

        store.update("l-1", notes="wall")
        assert len(calls) == 3
        print("  [PASS] Geometry edits without a canvas size are rejected")

    def test_update_rejects_malformed_points(self):
        store, calls = make_store()
        store.add(create_line_annotation(1, (0, 0), (300, 400), 1000, 1000, annotation_id="l-1"))
        store.add(create_polygon_annotation(
            1, [(0, 0), (100, 0), (100, 100)], 1000, 1000, annotation_id="p-1",
        ))

        for annotation_id, changes in [
            ("p-1", {"vertices": [[0.1]]}),
            ("p-1", {"vertices": 5}),
            ("p-1", {"vertices": [[0.1, "a"], [0.2, 0.2], [0.3, 0.3]]}),
            ("l-1", {"end": None}),
            ("l-1", {"end": (0.1, 0.2, 0.3)}),
        ]:
            try:
                store.update(annotation_id, canvas_size=(1000, 1000), **changes)
                assert False, f"Should have raised ValidationError for {changes}"
            except ValidationError:
                pass

        assert len(store.get("p-1").vertices) == 3
        assert len(calls) == 2
        print("  [PASS] Malformed points raise ValidationError")

    def test_delete(self):
        store, calls = make_store()
        store.add(make_marker("a"))
        store.add(make_marker("b"))
        store.select("a")

        assert store.delete("a") is True
        assert store.get("a") is None
        assert store.selected_id is None
        assert len(calls) == 3

        assert store.delete("a") is False
        assert len(calls) == 3
        print("  [PASS] Delete removes and clears selection")

    def test_delete_keeps_other_selection(self):
        store, _ = make_store()
        store.add(make_marker("a"))
        store.add(make_marker("b"))
        store.select("b")
        store.delete("a")
        assert store.selected_id == "b"
        assert store.selected().id == "b"
        print("  [PASS] Deleting another annotation keeps selection")

    def test_clear_page_and_all(self):
        store, calls = make_store()
        store.add(make_marker("a", page_number=1))
        store.add(make_marker("b", page_number=2))
        store.select("b")

        store.clear(page_number=2)
        assert store.get_by_page(2) == []
        assert store.count == 1
        assert store.selected_id is None

        store.clear()
        assert store.count == 0
        assert len(calls) == 4
        print("  [PASS] Clear one page or all pages")

    def test_select_unknown_ignored(self):
        store, calls = make_store()
        store.add(make_marker("a"))
        store.select("a")
        store.select("missing")
        assert store.selected_id == "a"
        store.select(None)
        assert store.selected() is None
        assert len(calls) == 1, "Selection does not notify"
        print("  [PASS] Selection is transient and silent")


class TestAnnotationStoreSnapshot:
    """Tests for to_dict / load."""

    def test_round_trip(self):
        store, _ = make_store()
        store.add(create_marker_annotation(1, (10, 10), 100, 100, annotation_id="m", text="A"))
        store.add(create_line_annotation(2, (0, 0), (50, 50), 100, 100, annotation_id="l"))
        store.add(create_polygon_annotation(2, [(0, 0), (10, 0), (10, 10)], 100, 100, annotation_id="p"))

        data = store.to_dict()
        assert set(data.keys()) == {"1", "2"}
        assert [record["id"] for record in data["2"]] == ["l", "p"]

        restored, calls = make_store()
        restored.load(data)
        assert restored.all_annotations() == store.all_annotations()
        assert calls == [], "load() does not notify"
        print("  [PASS] Store to_dict/load round trip")

    def test_load_rejects_invalid(self):
        store, _ = make_store()
        store.add(make_marker("keep"))

        bad = {"1": [{"type": "marker", "id": "x", "page_number": 1, "x": 3.0, "y": 0.5}]}
        try:
            store.load(bad)
            assert False, "Should have raised ValidationError"
        except ValidationError:
            pass
        assert store.get("keep") is not None
        print("  [PASS] Invalid snapshot leaves store unchanged")


def run_all_tests():
    """Run all annotation store tests."""
    print("=" * 60)
    print("Annotation Store Tests")
    print("=" * 60)
    print()

    all_passed = True

    sections = [
        ("Add Tests", TestAnnotationStoreAdd, [
            "test_add_and_get",
            "test_pages_are_partitioned",
            "test_rejects_out_of_range_coordinates",
            "test_rejects_small_polygon",
            "test_rejects_bad_page_number",
            "test_rejects_duplicate_id",
            "test_validate_annotation_accepts_factory_output",
        ]),
        ("Mutation Tests", TestAnnotationStoreMutations, [
            "test_update_merges_and_stamps",
            "test_update_unknown_id_is_noop",
            "test_update_validates_merged_result",
            "test_update_ignores_read_only_fields",
            "test_update_moves_page",
            "test_update_geometry_remeasures",
            "test_update_geometry_requires_canvas_size",
            "test_update_rejects_malformed_points",
            "test_delete",
            "test_delete_keeps_other_selection",
            "test_clear_page_and_all",
            "test_select_unknown_ignored",
        ]),
        ("Snapshot Tests", TestAnnotationStoreSnapshot, [
            "test_round_trip",
            "test_load_rejects_invalid",
        ]),
    ]

    for title, test_class, names in sections:
        print(f"{title}:")
        print("-" * 40)
        tests = test_class()
        try:
            for name in names:
                getattr(tests, name)()
        except AssertionError as e:
            print(f"  [FAIL] {e}")
            all_passed = False
        except Exception as e:
            print(f"  [ERROR] {e}")
            all_passed = False
        print()

    print("=" * 60)
    if all_passed:
        print("ALL ANNOTATION STORE TESTS PASSED")
        return 0
    else:
        print("SOME TESTS FAILED")
        return 1


if __name__ == "__main__":
    sys.exit(run_all_tests())

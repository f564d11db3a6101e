"""
Label Catalog Tests

Tests for label validation, catalog CRUD and the predefined label set.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from takeoff.constants import LabelUnit, UNCATEGORIZED
from takeoff.errors import ValidationError
from takeoff.labels import (
    LabelDefinition,
    LabelCatalog,
    PREDEFINED_LABELS,
    validate_label,
)


class TestValidateLabel:
    """Tests for validate_label."""

    def test_valid_label(self):
        validate_label(LabelDefinition(id="a", name="A"))
        validate_label(LabelDefinition(id="b", name="B", unit=LabelUnit.SQUARE_METERS, cost_per_unit=0.0))
        print("  [PASS] Valid labels accepted")

    def test_invalid_labels(self):
        bad_labels = [
            LabelDefinition(id="", name="No id"),
            LabelDefinition(id="x", name=""),
            LabelDefinition(id="x", name="X", unit="gallons"),
            LabelDefinition(id="x", name="X", cost_per_unit=-1.0),
            LabelDefinition(id="x", name="X", cost_per_unit=float("nan")),
            LabelDefinition(id="x", name="X", cost_per_unit="50"),
            LabelDefinition(id="x", name="X", cost_per_unit=[50]),
            LabelDefinition(id="x", name="X", cost_per_unit=True),
        ]
        for label in bad_labels:
            try:
                validate_label(label)
                assert False, f"Should have raised ValidationError for {label}"
            except ValidationError:
                pass
        print("  [PASS] Invalid labels rejected")

    def test_from_dict(self):
        label = LabelDefinition.from_dict({
            "id": "tiles",
            "name": "Tiles",
            "unit": "square_meters",
            "category": "",
            "cost_per_unit": "45",
            "extra": "ignored",
        })
        assert label.cost_per_unit == 45.0
        assert label.category == UNCATEGORIZED
        assert LabelDefinition.from_dict(label.to_dict()) == label
        print("  [PASS] Label from_dict")

    def test_from_dict_bad_cost(self):
        for bad in ["cheap", [1, 2], {"amount": 5}]:
            try:
                LabelDefinition.from_dict({"id": "x", "name": "X", "cost_per_unit": bad})
                assert False, f"Should have raised ValidationError for {bad!r}"
            except ValidationError:
                pass
        print("  [PASS] Label from_dict rejects non-numeric cost")


class TestLabelCatalog:
    """Tests for LabelCatalog."""

    def test_add_and_get(self):
        catalog = LabelCatalog()
        catalog.add(LabelDefinition(id="a", name="A", category="Group 1"))
        catalog.add(LabelDefinition(id="b", name="B", category="Group 2"))
        catalog.add(LabelDefinition(id="c", name="C", category="Group 1"))

        assert len(catalog) == 3
        assert "b" in catalog
        assert "z" not in catalog
        assert catalog.get("c").name == "C"
        assert [label.id for label in catalog] == ["a", "b", "c"]
        assert catalog.categories() == ["Group 1", "Group 2"]
        assert [label.id for label in catalog.by_category()["Group 1"]] == ["a", "c"]
        print("  [PASS] Add and look up labels")

    def test_duplicate_rejected(self):
        catalog = LabelCatalog([LabelDefinition(id="a", name="A")])
        try:
            catalog.add(LabelDefinition(id="a", name="Other"))
            assert False, "Should have raised ValidationError"
        except ValidationError:
            pass
        assert len(catalog) == 1
        print("  [PASS] Duplicate label id rejected")

    def test_update(self):
        catalog = LabelCatalog([LabelDefinition(id="a", name="A", cost_per_unit=10.0)])

        updated = catalog.update("a", cost_per_unit=12.5, id="ignored")
        assert updated.id == "a"
        assert catalog.get("a").cost_per_unit == 12.5

        assert catalog.update("missing", name="X") is None

        try:
            catalog.update("a", cost_per_unit=-3.0)
            assert False, "Should have raised ValidationError"
        except ValidationError:
            pass
        assert catalog.get("a").cost_per_unit == 12.5

        try:
            catalog.update("a", cost_per_unit="50")
            assert False, "Should have raised ValidationError for a string cost"
        except ValidationError:
            pass
        assert catalog.get("a").cost_per_unit == 12.5

        try:
            catalog.update("a", price=3.0)
            assert False, "Should have raised ValidationError for unknown field"
        except ValidationError:
            pass
        print("  [PASS] Update label")

    def test_delete(self):
        catalog = LabelCatalog([LabelDefinition(id="a", name="A")])
        assert catalog.delete("a") is True
        assert catalog.delete("a") is False
        assert len(catalog) == 0
        print("  [PASS] Delete label")

    def test_labels_is_a_copy(self):
        catalog = LabelCatalog([LabelDefinition(id="a", name="A")])
        labels = catalog.labels
        labels.clear()
        assert len(catalog) == 1
        print("  [PASS] labels returns a copy")


class TestPredefinedLabels:
    """Tests for the predefined label templates."""

    def test_predefined_set(self):
        catalog = LabelCatalog(PREDEFINED_LABELS)
        assert len(catalog) == 10
        assert catalog.get("label-windows").cost_per_unit == 500.0
        assert catalog.get("label-roof").cost_per_unit == 120.0
        assert catalog.get("label-walls").unit == LabelUnit.LINEAR_METERS
        assert catalog.get("label-floors").unit == LabelUnit.SQUARE_METERS
        print("  [PASS] Ten predefined labels load into a catalog")

    def test_predefined_valid(self):
        for label in PREDEFINED_LABELS:
            validate_label(label)
            assert label.unit in LabelUnit.ALL
        print("  [PASS] Predefined labels are valid")


def run_all_tests():
    """Run all label tests."""
    print("=" * 60)
    print("Label Catalog Tests")
    print("=" * 60)
    print()

    all_passed = True

    sections = [
        ("Validation Tests", TestValidateLabel, [
            "test_valid_label",
            "test_invalid_labels",
            "test_from_dict",
            "test_from_dict_bad_cost",
        ]),
        ("Catalog Tests", TestLabelCatalog, [
            "test_add_and_get",
            "test_duplicate_rejected",
            "test_update",
            "test_delete",
            "test_labels_is_a_copy",
        ]),
        ("Predefined Label Tests", TestPredefinedLabels, [
            "test_predefined_set",
            "test_predefined_valid",
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
        print("ALL LABEL TESTS PASSED")
        return 0
    else:
        print("SOME TESTS FAILED")
        return 1


if __name__ == "__main__":
    sys.exit(run_all_tests())

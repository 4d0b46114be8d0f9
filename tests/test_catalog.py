import pytest

from breathpacer.catalog import ExerciseCatalog, default_catalog


def test_catalog_lists_seeded_patterns_in_order():
    ids = [p.id for p in default_catalog().list_exercises()]
    assert ids == ["box-breathing", "4-7-8", "deep-calm", "energizing"]


def test_get_exercise():
    catalog = default_catalog()
    pattern = catalog.get_exercise("4-7-8")
    assert (pattern.inhale, pattern.hold1, pattern.exhale, pattern.hold2) == (4, 7, 8, 0)
    assert catalog.get_exercise("missing") is None


def test_payload_matches_wire_shape():
    payload = default_catalog().to_payload()
    assert payload[0]["id"] == "box-breathing"
    assert payload[3]["steps"] == {"inhale": 2, "hold1": 0, "exhale": 2, "hold2": 0}


def test_duplicate_ids_rejected():
    pattern = default_catalog().get_exercise("deep-calm")
    with pytest.raises(ValueError):
        ExerciseCatalog([pattern, pattern])

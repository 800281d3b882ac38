import json

import pytest

from medscribe.catalog import Catalog, CatalogLoader, CatalogEmpty, CatalogUnavailable
from medscribe.adapters.diseases import DiseaseTracker


# mirrors the catalog written by the catalog_path fixture
DISEASES = ["Dengue Fever", "Malaria", "Cholera"]


def test_load_reads_names_in_order(catalog_path):
    catalog = CatalogLoader(str(catalog_path)).load()

    assert catalog.available
    assert catalog.items == DISEASES


def test_missing_file_yields_unavailable_catalog(tmp_path):
    catalog = CatalogLoader(str(tmp_path / "nope.json")).load()

    assert catalog.items == []
    assert not catalog.available


def test_invalid_json_yields_unavailable_catalog(tmp_path):
    path = tmp_path / "diseases.json"
    path.write_text("[\"Malaria\",", encoding="utf-8")

    catalog = CatalogLoader(str(path)).load()

    assert catalog.items == []
    assert catalog.error


@pytest.mark.parametrize("payload", [{"diseases": ["Malaria"]}, ["Malaria", 42]])
def test_wrong_shape_yields_unavailable_catalog(tmp_path, payload):
    path = tmp_path / "diseases.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    catalog = CatalogLoader(str(path)).load()

    assert catalog.items == []
    assert not catalog.available


def test_empty_array_is_available_but_empty(tmp_path):
    path = tmp_path / "diseases.json"
    path.write_text("[]", encoding="utf-8")

    catalog = CatalogLoader(str(path)).load()

    assert catalog.available
    assert len(catalog) == 0


def test_watch_without_directory_is_skipped(tmp_path):
    loader = CatalogLoader(str(tmp_path / "missing" / "diseases.json"))

    assert loader.watch(lambda catalog: None) is False
    loader.close()


class TestDiseaseTracker:
    def test_serves_each_entry_once_then_wraps(self, catalog_path):
        tracker = DiseaseTracker(CatalogLoader(str(catalog_path)))
        tracker.load()

        served = [tracker.next().disease for _ in DISEASES]
        assert served == DISEASES
        assert tracker.remaining() == 0

        assert tracker.next().disease == DISEASES[0]
        assert tracker.used_diseases == {DISEASES[0]}
        assert tracker.next().disease == DISEASES[1]

    def test_loads_lazily_when_empty(self, catalog_path):
        tracker = DiseaseTracker(CatalogLoader(str(catalog_path)))

        assert tracker.next().disease == DISEASES[0]

    def test_reloads_after_failed_startup_load(self, tmp_path):
        path = tmp_path / "diseases.json"
        tracker = DiseaseTracker(CatalogLoader(str(path)))
        tracker.load()
        assert tracker.diseases == []

        path.write_text(json.dumps(["Malaria"]), encoding="utf-8")

        assert tracker.next().disease == "Malaria"

    def test_unavailable_catalog_raises(self, tmp_path):
        tracker = DiseaseTracker(CatalogLoader(str(tmp_path / "nope.json")))

        with pytest.raises(CatalogUnavailable):
            tracker.next()

    def test_empty_catalog_raises(self, tmp_path):
        path = tmp_path / "diseases.json"
        path.write_text("[]", encoding="utf-8")
        tracker = DiseaseTracker(CatalogLoader(str(path)))

        with pytest.raises(CatalogEmpty):
            tracker.next()

    def test_replace_keeps_served_set_inside_catalog(self, catalog_path):
        tracker = DiseaseTracker(CatalogLoader(str(catalog_path)))
        tracker.load()
        tracker.next()
        tracker.next()

        tracker.replace(Catalog(items=["Malaria", "Measles"]))

        assert tracker.used_diseases == {"Malaria"}
        assert tracker.next().disease == "Measles"

    def test_duplicate_entries_are_served_once(self, tmp_path):
        path = tmp_path / "diseases.json"
        path.write_text(json.dumps(["Malaria", "Malaria", "Cholera"]), encoding="utf-8")
        tracker = DiseaseTracker(CatalogLoader(str(path)))

        assert [tracker.next().disease for _ in range(3)] == ["Malaria", "Cholera", "Malaria"]


def test_file_handler_reloads_only_the_catalog_file(catalog_path):
    from types import SimpleNamespace
    from medscribe.catalog.loader import CatalogFileHandler

    received = []
    handler = CatalogFileHandler(CatalogLoader(str(catalog_path)), received.append)

    handler.on_modified(SimpleNamespace(src_path=str(catalog_path.parent / "other.json")))
    assert received == []

    catalog_path.write_text(json.dumps(["Measles"]), encoding="utf-8")
    handler.on_modified(SimpleNamespace(src_path=str(catalog_path)))

    assert [c.items for c in received] == [["Measles"]]


def test_file_handler_ignores_broken_reload(catalog_path):
    from types import SimpleNamespace
    from medscribe.catalog.loader import CatalogFileHandler

    received = []
    handler = CatalogFileHandler(CatalogLoader(str(catalog_path)), received.append)

    catalog_path.write_text("{broken", encoding="utf-8")
    handler.on_modified(SimpleNamespace(src_path=str(catalog_path)))

    assert received == []

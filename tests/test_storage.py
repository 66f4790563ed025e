"""
Tests for JSON-backed property storage.
"""

import json
import pytest

from dqi_engine.api import PropertyStorage, create_sample_properties
from dqi_engine.core import PropertyType


@pytest.fixture
def storage_file(tmp_path):
    """Path to a fresh storage file."""
    return str(tmp_path / "data" / "properties.json")


class TestInMemoryStorage:
    """Test CRUD without persistence."""

    def test_create_and_get(self, office_deal):
        storage = PropertyStorage()
        storage.create(office_deal)
        assert storage.get("LA-OFFICE-001") == office_deal
        assert storage.count() == 1

    def test_duplicate_rejected(self, office_deal):
        storage = PropertyStorage()
        storage.create(office_deal)
        with pytest.raises(ValueError):
            storage.create(office_deal)

    def test_get_all(self, office_deal, distressed_deal):
        storage = PropertyStorage()
        storage.create(office_deal)
        storage.create(distressed_deal)
        assert [p.property_id for p in storage.get_all()] == ["LA-OFFICE-001", "LA-OFFICE-002"]

    def test_update(self, office_deal):
        storage = PropertyStorage()
        storage.create(office_deal)
        storage.update(office_deal.with_overrides(net_operating_income=600_000))
        assert storage.get("LA-OFFICE-001").net_operating_income == 600_000

    def test_update_missing(self, office_deal):
        with pytest.raises(ValueError):
            PropertyStorage().update(office_deal)

    def test_delete(self, office_deal):
        storage = PropertyStorage()
        storage.create(office_deal)
        assert storage.delete("LA-OFFICE-001") is True
        assert storage.delete("LA-OFFICE-001") is False
        assert storage.get("LA-OFFICE-001") is None

    def test_search(self, office_deal, distressed_deal):
        storage = PropertyStorage()
        storage.create(office_deal)
        storage.create(distressed_deal.with_overrides(
            property_type=PropertyType.RETAIL, location="Columbus, OH",
        ))
        assert len(storage.search(property_type=PropertyType.OFFICE)) == 1
        assert len(storage.search(location="columbus")) == 1
        assert len(storage.search()) == 2

    def test_generate_id(self):
        storage = PropertyStorage()
        first, second = storage.generate_id(), storage.generate_id()
        assert first.startswith("PROP-")
        assert first != second

    def test_sample_properties(self):
        storage = PropertyStorage()
        create_sample_properties(storage)
        assert storage.count() == 3


class TestJsonPersistence:
    """Test the JSON file round trip."""

    def test_persists_across_instances(self, storage_file, office_deal):
        PropertyStorage(storage_file).create(office_deal)
        reloaded = PropertyStorage(storage_file)
        assert reloaded.get("LA-OFFICE-001") == office_deal

    def test_file_format(self, storage_file, office_deal):
        PropertyStorage(storage_file).create(office_deal)
        with open(storage_file) as f:
            data = json.load(f)
        assert data["version"] == "1.0"
        assert data["properties"][0]["property_type"] == "Office"

    def test_corrupt_file_is_logged(self, tmp_path, caplog):
        path = tmp_path / "properties.json"
        path.write_text("{not json")
        with caplog.at_level("WARNING", logger="dqi_engine.api.storage"):
            storage = PropertyStorage(str(path))
        assert storage.count() == 0
        assert "Could not load properties" in caplog.text

    def test_invalid_record_skipped(self, tmp_path):
        path = tmp_path / "properties.json"
        path.write_text(json.dumps({
            "properties": [
                {"property_id": "ok", "property_value": 1_000_000},
                {"property_id": "bad", "property_value": 0},
            ],
        }))
        storage = PropertyStorage(str(path))
        assert storage.get("ok") is not None
        assert storage.get("bad") is None

"""Tests for settings loading and the Catalog facade."""

import pytest

from catalogcache import Catalog, CatalogSettings, open_store
from catalogcache.config import build_medium
from catalogcache.composition import new_line
from catalogcache.schema import DEFAULT_NAMESPACE, MATERIAL_CREATION_DRAFT
from catalogcache.storage import FileMedium, MemoryMedium
from catalogcache.storage.postgres_medium import PostgresMedium

CATALOG_VARS = [
    "CATALOG_BACKEND",
    "CATALOG_NAMESPACE",
    "CATALOG_STORAGE_PATH",
    "CATALOG_DB_URL",
    "CATALOG_QUOTA_BYTES",
]


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so monkeypatch restores "unset" even for values load_dotenv adds
    for name in CATALOG_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestCatalogSettings:

    def test_defaults(self, clean_env):
        settings = CatalogSettings.from_env()
        assert settings.backend == "memory"
        assert settings.namespace == DEFAULT_NAMESPACE
        assert settings.quota_bytes is None

    def test_reads_environment(self, clean_env, tmp_path):
        clean_env.setenv("CATALOG_BACKEND", "FILE")
        clean_env.setenv("CATALOG_STORAGE_PATH", str(tmp_path))
        clean_env.setenv("CATALOG_NAMESPACE", "demo")

        settings = CatalogSettings.from_env()

        assert settings.backend == "file"
        assert settings.storage_path == str(tmp_path)
        assert settings.namespace == "demo"

    def test_loads_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("CATALOG_NAMESPACE=from-file\nCATALOG_QUOTA_BYTES=2048\n")

        settings = CatalogSettings.from_env(env_file)

        assert settings.namespace == "from-file"
        assert settings.quota_bytes == 2048

    def test_missing_env_file_is_not_fatal(self, clean_env, tmp_path):
        assert CatalogSettings.from_env(tmp_path / "absent.env").backend == "memory"

    def test_unknown_backend(self, clean_env):
        clean_env.setenv("CATALOG_BACKEND", "indexeddb")
        with pytest.raises(ValueError):
            CatalogSettings.from_env()

    def test_file_backend_needs_path(self):
        with pytest.raises(ValueError):
            CatalogSettings(backend="file").validate()

    def test_bad_quota(self, clean_env):
        clean_env.setenv("CATALOG_QUOTA_BYTES", "lots")
        with pytest.raises(ValueError):
            CatalogSettings.from_env()


class TestOpenStore:

    def test_memory_backend(self):
        store = open_store(CatalogSettings(quota_bytes=10))
        assert isinstance(store.medium, MemoryMedium)
        assert store.medium.quota_bytes == 10

    def test_file_backend(self, tmp_path):
        store = open_store(CatalogSettings(backend="file", storage_path=str(tmp_path), namespace="ns"))
        assert isinstance(store.medium, FileMedium)
        assert store.namespace == "ns"

    def test_postgres_backend_is_lazy(self):
        medium = build_medium(CatalogSettings(backend="postgres", db_url="postgresql://u:p@db:5432/catalog"))
        assert isinstance(medium, PostgresMedium)
        assert medium.db_url == "postgresql://u:p@db:5432/catalog"
        assert medium._pool is None


class TestCatalog:

    def test_flows_share_one_dataset(self, tmp_path):
        settings = CatalogSettings(backend="file", storage_path=str(tmp_path))
        wizard_a = Catalog.open(settings)
        wizard_b = Catalog.open(settings)

        cotton = wizard_a.components.create_component({
            "name": "Organic Cotton",
            "unit_of_measurement": "kg",
            "unit_cost": 10.0,
            "unit_cost_currency": "USD",
        })
        tote = wizard_b.products.create_product({
            "name": "Canvas Tote",
            "upc": "0123456789012",
            "category_type": "Bags",
            "sub_category": "Totes",
            "unit_of_measure": "pcs",
            "measure_value": 1,
        })

        result = wizard_b.boms.save(tote.id, [new_line(cotton, quantity=2, percentage=50)])

        assert result.saved
        assert wizard_a.boms.totals(tote.id).total_cost == pytest.approx(20.0)

    def test_drafts(self):
        catalog = Catalog(open_store(CatalogSettings()))
        catalog.drafts.set_draft(MATERIAL_CREATION_DRAFT, {"name": "Wool"})
        assert catalog.drafts.get_draft(MATERIAL_CREATION_DRAFT) == {"name": "Wool"}

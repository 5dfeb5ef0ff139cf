"""Row store tests: in-memory, hosted (mocked HTTP) and CSV seeding."""
import logging
import math
from unittest.mock import MagicMock

import pytest
import requests

from yield_dashboard.config import RowStoreConfig
from yield_dashboard.errors import RowStoreError
from yield_dashboard.models import ReferenceRow
from yield_dashboard.store import (
    InMemoryRowStore,
    SupabaseRowStore,
    build_row_stores,
    load_rows_csv,
)


class TestInMemoryRowStore:
    def test_read_limit(self):
        store = InMemoryRowStore([{"i": i} for i in range(10)])
        assert [r["i"] for r in store.read(3)] == [0, 1, 2]

    def test_read_returns_copies(self):
        store = InMemoryRowStore([{"yield": 1.0}])
        store.read(1)[0]["yield"] = 99
        assert store.read(1)[0]["yield"] == 1.0

    def test_write_appends(self):
        store = InMemoryRowStore()
        store.write({"a": 1})
        store.write({"a": 2})
        assert store.written == [{"a": 1}, {"a": 2}]

    def test_write_logs_store_name(self, caplog):
        store = InMemoryRowStore(name="predictions")
        with caplog.at_level(logging.DEBUG, logger="yield_dashboard.store"):
            store.write({"a": 1})
        assert "Appended row to predictions (1 rows)" in caplog.text


class TestSupabaseRowStore:
    def make_store(self, session):
        return SupabaseRowStore("https://demo.supabase.co/", "secret", "crops_dataset", session=session)

    def test_read(self):
        session = MagicMock()
        session.get.return_value.json.return_value = [{"yield": 3.0}]

        rows = self.make_store(session).read(200)

        assert rows == [{"yield": 3.0}]
        args, kwargs = session.get.call_args
        assert args[0] == "https://demo.supabase.co/rest/v1/crops_dataset"
        assert kwargs["params"] == {"select": "*", "limit": 200}
        assert kwargs["headers"]["apikey"] == "secret"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    def test_read_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(RowStoreError):
            self.make_store(session).read(200)

    def test_read_http_error(self):
        session = MagicMock()
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
        with pytest.raises(RowStoreError):
            self.make_store(session).read(200)

    def test_read_unexpected_payload(self):
        session = MagicMock()
        session.get.return_value.json.return_value = {"message": "oops"}
        with pytest.raises(RowStoreError):
            self.make_store(session).read(10)

    def test_write_replaces_non_finite(self):
        session = MagicMock()
        self.make_store(session).write({"crop": "rice", "predicted_yield_lr": math.nan, "confidence_score": 0.65})

        _, kwargs = session.post.call_args
        assert kwargs["json"] == {"crop": "rice", "predicted_yield_lr": None, "confidence_score": 0.65}
        assert kwargs["headers"]["Prefer"] == "return=minimal"

    def test_write_error(self):
        session = MagicMock()
        session.post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("409")
        with pytest.raises(RowStoreError):
            self.make_store(session).write({"crop": "rice"})


class TestCSVSeeding:
    def test_column_aliases(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text(
            "Temperature_Avg,Precipitation,Humidity,Soil_pH,N,P,K,Yield\n"
            "25,800,60,6.5,100,40,50,3.2\n"
            "26,820,62,6.6,110,42,52,\n"
        )
        rows = load_rows_csv(str(path))

        assert len(rows) == 1
        row = ReferenceRow.from_record(rows[0])
        assert row.temperature == 25
        assert row.rainfall == 800
        assert row.yield_ == 3.2
        assert row.npk_ratio == 0.0

    def test_blank_engineered_fields(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text(
            "crop,temperature,rainfall,humidity,soil_ph,nitrogen,phosphorus,potassium,yield,npk_ratio\n"
            "rice,25,800,60,6.5,100,40,50,3.2,\n"
        )
        rows = load_rows_csv(str(path))
        assert rows[0]["npk_ratio"] is None
        assert ReferenceRow.from_record(rows[0]).npk_ratio == 0.0

    def test_missing_yield_column(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text("temperature,rainfall\n25,800\n")
        with pytest.raises(ValueError):
            load_rows_csv(str(path))


class TestBuildRowStores:
    def test_local_stores(self):
        reference, predictions = build_row_stores(RowStoreConfig(url="", key=""))
        assert isinstance(reference, InMemoryRowStore)
        assert isinstance(predictions, InMemoryRowStore)
        assert len(predictions) == 0

    def test_hosted_stores(self):
        config = RowStoreConfig(url="https://demo.supabase.co", key="k")
        reference, predictions = build_row_stores(config)
        assert isinstance(reference, SupabaseRowStore)
        assert reference.endpoint.endswith("/rest/v1/crops_dataset")
        assert predictions.endpoint.endswith("/rest/v1/predictions")

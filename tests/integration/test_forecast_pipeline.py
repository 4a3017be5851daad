#!/usr/bin/env python3
"""
Integration tests for the sync-and-forecast pipeline

Runs ForecastEngine against the JSON transaction store and the local
warehouse on a temporary directory.
"""

import asyncio
from datetime import date

import pytest

from billtrack.core.json_utils import write_json
from billtrack.forecast import ForecastEngine, JsonTransactionStore, LocalWarehouse


def write_transactions(path, transactions):
    write_json(path, {"users": [{"id": "u1", "external_id": "user_abc"}], "transactions": transactions})


def expense(tx_id: str, day: str, amount: str = "500", category: str = "Food") -> dict:
    return {"id": tx_id, "userId": "u1", "type": "EXPENSE", "amount": amount, "category": category, "date": day}


@pytest.mark.integration
@pytest.mark.forecast
class TestForecastPipeline:
    """Test end-to-end sync, training and prediction."""

    def setup_engine(self, temp_dir, today=date(2021, 10, 15)):
        self.transactions_path = temp_dir / "transactions.json"
        self.warehouse = LocalWarehouse(temp_dir / "warehouse")
        return ForecastEngine(
            JsonTransactionStore(self.transactions_path),
            self.warehouse,
            today=lambda: today,
        )

    def test_single_expense_predicts_flat_window(self, temp_dir):
        """Test one 500 expense in August 2021 predicts 500 for each window month."""
        engine = self.setup_engine(temp_dir)
        write_transactions(self.transactions_path, [expense("t1", "2021-08-10T12:00:00")])

        result = asyncio.run(engine.run("user_abc"))

        assert result.inserted_rows == 1
        assert [p.month_index for p in result.predictions] == [24258, 24259, 24260, 24261, 24262, 24263]
        assert all(p.category == "Food" for p in result.predictions)
        for prediction in result.predictions:
            assert prediction.predicted_value == pytest.approx(500.0)
        assert result.transactions == [{"date": "2021-08-10", "amount": 500.0}]

    def test_repeated_runs_are_idempotent(self, temp_dir):
        """Test that a second run without new data inserts nothing."""
        engine = self.setup_engine(temp_dir)
        write_transactions(
            self.transactions_path,
            [expense("t1", "2021-08-10"), expense("t2", "2021-09-03", amount="300")],
        )

        first = asyncio.run(engine.run("user_abc"))
        second = asyncio.run(engine.run("user_abc"))

        assert first.inserted_rows == 2
        assert second.inserted_rows == 0
        assert self.warehouse.row_count() == 2

    def test_only_new_days_are_synced(self, temp_dir):
        """Test that later transactions are appended after the watermark."""
        engine = self.setup_engine(temp_dir)
        write_transactions(self.transactions_path, [expense("t1", "2021-08-10")])
        asyncio.run(engine.run("user_abc"))

        write_transactions(
            self.transactions_path,
            [expense("t1", "2021-08-10"), expense("t2", "2021-08-10T18:00:00"), expense("t3", "2021-08-11")],
        )
        result = asyncio.run(engine.run("user_abc"))

        assert result.inserted_rows == 1
        assert self.warehouse.row_count() == 2

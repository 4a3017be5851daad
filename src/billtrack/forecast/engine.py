#!/usr/bin/env python3
"""
Sync-and-Forecast Engine

Incrementally copies an entity's new source transactions into the analytical
store, retrains the category regression model and returns per-category
predictions for a rolling window of months.

Phases run strictly in order:
1. Sync: read the entity's high-watermark (latest synced day), pull only
   transactions dated after it and append them. An insert failure is logged
   and forecasting continues on the data already in the store.
2. Train/predict: rebuild the monthly aggregate, retrain (a CONFLICT from a
   concurrent training job means the existing model is used), then predict
   every (category, month) in the window and keep positive values.

Repeated runs with no new source data insert nothing: idempotency rests on
the watermark filter.
"""

import logging
from collections.abc import Callable
from datetime import date

from ..core.errors import EntityNotFoundError, UnauthorizedError, WarehouseError
from ..core.models import ForecastResult, PredictionRow, month_index
from .transactions import TransactionStore
from .warehouse import AnalyticalStore

logger = logging.getLogger(__name__)


def forecast_window(today: date, months_back: int = 4, months_ahead: int = 1) -> list[int]:
    """
    Month indexes from ``months_back`` before to ``months_ahead`` after today's month.

    With the defaults this is six consecutive months.
    """
    current = month_index(today)
    return list(range(current - months_back, current + months_ahead + 1))


class ForecastEngine:
    """Runs the sync phase followed by the train/predict phase for one entity."""

    def __init__(
        self,
        transactions: TransactionStore,
        warehouse: AnalyticalStore,
        model_name: str = "category_predictor",
        months_back: int = 4,
        months_ahead: int = 1,
        today: Callable[[], date] = date.today,
    ):
        self.transactions = transactions
        self.warehouse = warehouse
        self.model_name = model_name
        self.months_back = months_back
        self.months_ahead = months_ahead
        self.today = today

    async def sync(self, entity: str) -> int:
        """
        Append the entity's transactions newer than the watermark.

        Returns:
            Number of rows inserted (0 when nothing new or the insert failed)
        """
        watermark = await self.warehouse.max_transaction_date(entity)
        logger.info(f"Sync watermark for {entity}: {watermark or 'none'}")

        new_transactions = await self.transactions.find_transactions(entity, after=watermark)
        logger.info(f"Found {len(new_transactions)} new transactions for {entity}")
        if not new_transactions:
            return 0

        rows = [tx.to_warehouse_row() for tx in new_transactions]
        try:
            await self.warehouse.insert_rows(rows)
        except WarehouseError as e:
            logger.warning(f"Insert of {len(rows)} rows failed, forecasting on existing data: {e}")
            return 0

        logger.info(f"Inserted {len(rows)} rows")
        return len(rows)

    async def train(self) -> None:
        """
        Rebuild the aggregate and retrain the model.

        Raises:
            WarehouseError: For any failure other than a training conflict
        """
        await self.warehouse.rebuild_monthly_aggregate()
        try:
            await self.warehouse.train_model(self.model_name)
        except WarehouseError as e:
            if not e.is_conflict:
                raise
            logger.warning(f"Training of {self.model_name} skipped, another job is running: {e}")
            return
        logger.info(f"Model {self.model_name} trained")

    async def predict(self, entity: str) -> list[PredictionRow]:
        """Positive predictions for the window, ordered by category then month."""
        window = forecast_window(self.today(), self.months_back, self.months_ahead)
        logger.info(f"Predicting month indexes {window[0]}..{window[-1]} for {entity}")

        predictions = await self.warehouse.predict(self.model_name, entity, window)
        positive = [p for p in predictions if p.predicted_value > 0]
        return sorted(positive, key=lambda p: (p.category, p.month_index))

    async def forecast(self, entity: str) -> list[PredictionRow]:
        """Sync then train and predict for an already resolved entity."""
        await self.sync(entity)
        await self.train()
        return await self.predict(entity)

    async def run(self, identity: str | None) -> ForecastResult:
        """
        Full entry point for an authenticated caller.

        Raises:
            UnauthorizedError: If no identity is supplied
            EntityNotFoundError: If the identity maps to no entity
            WarehouseError: If training (other than a conflict) or prediction fails
        """
        if not identity:
            raise UnauthorizedError("Unauthorized")

        entity = await self.transactions.resolve_entity(identity)
        if entity is None:
            raise EntityNotFoundError(f"User not found in database: {identity}")
        logger.info(f"Mapped identity {identity} to entity {entity}")

        inserted = await self.sync(entity)
        await self.train()
        predictions = await self.predict(entity)
        history = await self.warehouse.expense_history(entity)

        return ForecastResult(predictions=predictions, transactions=history, inserted_rows=inserted)

#!/usr/bin/env python3
"""
Analytical Store

The AnalyticalStore protocol used by the sync-and-forecast engine, and a
local implementation backed by JSON files, pandas and scikit-learn.

LocalWarehouse keeps:
- an append-only expense table (one row per synced transaction),
- a monthly aggregate table (expense totals per entity/category/month_index),
- linear regression models fitted on the aggregate.

The regression one-hot encodes entity and category next to the raw month
index. Fitted models are persisted as coefficients and intercept only.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import date
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from ..core.errors import WarehouseError, WarehouseErrorKind
from ..core.json_utils import read_json, write_json
from ..core.models import PredictionRow, TransactionType

logger = logging.getLogger(__name__)

EXPENSE_COLUMNS = ["type", "amount", "category", "date", "description", "entity"]
AGGREGATE_COLUMNS = ["entity", "category", "month_index", "monthly_expense"]


class AnalyticalStore(Protocol):
    """Warehouse holding synced expenses, the monthly aggregate and models."""

    async def max_transaction_date(self, entity: str) -> date | None:
        """Latest synced transaction day for ``entity`` (None if nothing valid)."""
        ...

    async def insert_rows(self, rows: list[dict[str, Any]]) -> None:
        """
        Append rows to the expense table.

        Raises:
            WarehouseError: With kind INSERT on failure
        """
        ...

    async def rebuild_monthly_aggregate(self) -> None:
        """Recompute expense totals per (entity, category, month_index)."""
        ...

    async def train_model(self, model_name: str) -> None:
        """
        (Re)train ``model_name`` on the monthly aggregate.

        Raises:
            WarehouseError: With kind CONFLICT if a training job for the model
                is already running, TRAINING for any other failure
        """
        ...

    async def predict(self, model_name: str, entity: str, month_indexes: list[int]) -> list[PredictionRow]:
        """Predict the monthly expense of each of the entity's categories per month."""
        ...

    async def expense_history(self, entity: str) -> list[dict[str, Any]]:
        """The entity's synced expenses as ``{date, amount}`` rows."""
        ...


@dataclass
class LinearModel:
    """
    Linear regression over the monthly aggregate, stored as static parameters.

    Features are ``month_index`` plus one-hot entity and category columns;
    ``feature_names`` fixes their order for prediction.
    """

    feature_names: list[str]
    coefficients: list[float]
    intercept: float

    def features(self, frame: pd.DataFrame) -> np.ndarray:
        return encode_features(frame).reindex(columns=self.feature_names, fill_value=0.0).to_numpy(dtype=float)

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        return self.features(frame) @ np.asarray(self.coefficients, dtype=float) + self.intercept


def encode_features(frame: pd.DataFrame) -> pd.DataFrame:
    """``month_index`` followed by one-hot ``entity_*`` and ``category_*`` columns."""
    dummies = pd.get_dummies(
        frame[["entity", "category"]].astype(str), prefix=["entity", "category"], dtype=float
    )
    return pd.concat([frame[["month_index"]].astype(float), dummies], axis=1)


def fit_linear_model(aggregate: pd.DataFrame) -> LinearModel:
    """Fit a LinearRegression labelled on ``monthly_expense``."""
    features = encode_features(aggregate)
    regression = LinearRegression()
    regression.fit(features.to_numpy(dtype=float), aggregate["monthly_expense"].to_numpy(dtype=float))
    return LinearModel(
        feature_names=list(features.columns),
        coefficients=[float(c) for c in np.asarray(regression.coef_).reshape(-1)],
        intercept=float(regression.intercept_),
    )


def build_monthly_aggregate(expenses: pd.DataFrame) -> pd.DataFrame:
    """Sum EXPENSE amounts per entity, category and month_index."""
    if expenses.empty:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)

    dates = pd.to_datetime(expenses["date"], errors="coerce")
    frame = expenses.assign(
        month_index=dates.dt.year * 12 + dates.dt.month,
        monthly_expense=expenses["amount"].astype(float).where(
            expenses["type"] == TransactionType.EXPENSE.value, 0.0
        ),
    ).dropna(subset=["month_index"]).astype({"month_index": int})

    return frame.groupby(["entity", "category", "month_index"], as_index=False)["monthly_expense"].sum()[
        AGGREGATE_COLUMNS
    ]


class LocalWarehouse:
    """AnalyticalStore persisted as JSON files under one directory."""

    EXPENSES_FILE = "expenses.json"
    AGGREGATE_FILE = "monthly_category_expenses.json"

    def __init__(self, directory: Path):
        self.directory = directory
        self._models: dict[str, LinearModel] = {}
        self._training: set[str] = set()

    def _expenses(self) -> pd.DataFrame:
        rows = read_json(self.directory / self.EXPENSES_FILE, default=[])
        return pd.DataFrame(rows, columns=EXPENSE_COLUMNS)

    def _aggregate(self) -> pd.DataFrame:
        rows = read_json(self.directory / self.AGGREGATE_FILE, default=[])
        return pd.DataFrame(rows, columns=AGGREGATE_COLUMNS)

    def _model_path(self, model_name: str) -> Path:
        return self.directory / "models" / f"{model_name}.json"

    def row_count(self) -> int:
        """Number of rows in the expense table."""
        return len(read_json(self.directory / self.EXPENSES_FILE, default=[]))

    async def max_transaction_date(self, entity: str) -> date | None:
        expenses = self._expenses()
        dates = pd.to_datetime(expenses.loc[expenses["entity"] == entity, "date"], errors="coerce")
        latest = dates.max()
        if pd.isna(latest):
            return None
        return latest.date()

    async def insert_rows(self, rows: list[dict[str, Any]]) -> None:
        missing = [c for row in rows for c in EXPENSE_COLUMNS if c not in row]
        if missing:
            raise WarehouseError(f"Rows missing columns: {sorted(set(missing))}", WarehouseErrorKind.INSERT)

        existing = read_json(self.directory / self.EXPENSES_FILE, default=[])
        existing.extend({c: row[c] for c in EXPENSE_COLUMNS} for row in rows)
        try:
            write_json(self.directory / self.EXPENSES_FILE, existing)
        except OSError as e:
            raise WarehouseError(f"Failed to append expense rows: {e}", WarehouseErrorKind.INSERT) from e

    async def rebuild_monthly_aggregate(self) -> None:
        aggregate = build_monthly_aggregate(self._expenses())
        try:
            write_json(self.directory / self.AGGREGATE_FILE, aggregate.to_dict(orient="records"))
        except OSError as e:
            raise WarehouseError(f"Failed to write monthly aggregate: {e}", WarehouseErrorKind.QUERY) from e
        logger.debug(f"Monthly aggregate rebuilt with {len(aggregate)} rows")

    async def train_model(self, model_name: str) -> None:
        if model_name in self._training:
            raise WarehouseError(
                f"Model {model_name} is already being trained by another job", WarehouseErrorKind.CONFLICT
            )

        self._training.add(model_name)
        try:
            aggregate = self._aggregate()
            if aggregate.empty:
                raise WarehouseError("No aggregate rows to train on", WarehouseErrorKind.TRAINING)
            try:
                model = await asyncio.to_thread(fit_linear_model, aggregate)
            except (ValueError, np.linalg.LinAlgError) as e:
                raise WarehouseError(f"Training {model_name} failed: {e}", WarehouseErrorKind.TRAINING) from e
            self._models[model_name] = model
            write_json(self._model_path(model_name), asdict(model))
        finally:
            self._training.discard(model_name)

    def _load_model(self, model_name: str) -> LinearModel:
        if model_name not in self._models:
            data = read_json(self._model_path(model_name))
            if data is None:
                raise WarehouseError(f"Model {model_name} has not been trained", WarehouseErrorKind.PREDICTION)
            self._models[model_name] = LinearModel(**data)
        return self._models[model_name]

    async def predict(self, model_name: str, entity: str, month_indexes: list[int]) -> list[PredictionRow]:
        model = self._load_model(model_name)
        aggregate = self._aggregate()
        categories = sorted(aggregate.loc[aggregate["entity"] == entity, "category"].astype(str).unique())
        if not categories or not month_indexes:
            return []

        frame = pd.DataFrame(
            [(entity, category, m) for category in categories for m in month_indexes],
            columns=["entity", "category", "month_index"],
        )
        values = model.predict(frame)
        return [
            PredictionRow(category=row.category, month_index=int(row.month_index), predicted_value=float(value))
            for row, value in zip(frame.itertuples(index=False), values)
        ]

    async def expense_history(self, entity: str) -> list[dict[str, Any]]:
        expenses = self._expenses()
        mask = (expenses["entity"] == entity) & (expenses["type"] == TransactionType.EXPENSE.value)
        history = expenses.loc[mask, ["date", "amount"]].sort_values("date", kind="stable")
        return [{"date": str(d), "amount": float(a)} for d, a in zip(history["date"], history["amount"])]

"""
Expense Forecast Package

Key Components:
- transactions: source-of-record TransactionStore protocol and JSON store
- warehouse: AnalyticalStore protocol and local pandas/scikit-learn warehouse
- engine: watermark-based sync followed by retraining and prediction
"""

from .engine import ForecastEngine, forecast_window
from .transactions import JsonTransactionStore, TransactionStore, parse_transaction
from .warehouse import (
    AnalyticalStore,
    LinearModel,
    LocalWarehouse,
    build_monthly_aggregate,
    encode_features,
    fit_linear_model,
)

__all__ = [
    "AnalyticalStore",
    "ForecastEngine",
    "JsonTransactionStore",
    "LinearModel",
    "LocalWarehouse",
    "TransactionStore",
    "build_monthly_aggregate",
    "encode_features",
    "fit_linear_model",
    "forecast_window",
    "parse_transaction",
]

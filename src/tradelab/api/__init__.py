"""HTTP surface over the backtest service and the narrative collaborator."""

from tradelab.api.app import create_app

__all__ = ["create_app"]

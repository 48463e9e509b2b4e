import json
import logging
import sqlite3
from dataclasses import asdict
from datetime import datetime
from sqlite3 import Row

from portfolio_tracker.db import Database
from portfolio_tracker.models import Portfolio
from portfolio_tracker.utils.model_utils import ModelFactory, to_serialisable

logger: logging.Logger = logging.getLogger(__name__)


class PortfolioRepository:
    """
    Key-value store of serialised portfolios.

    Each source portfolio is kept as one JSON payload under its identifier. An
    absent key means no portfolio is loaded. Storage failures are logged and
    degrade to "nothing stored" so callers can carry on with in-memory state.
    """

    def __init__(self, db: Database):
        self.db: Database = db

    def get(self, key: str) -> Portfolio | None:
        try:
            row: Row | None = self.db.query_one(
                "SELECT payload FROM portfolios WHERE key = ?",
                (key,),
            )
        except sqlite3.Error as e:
            logger.warning(f"Could not load {key} from storage: {e}")
            return None

        if not row:
            return None

        try:
            return ModelFactory.create_from_dict(Portfolio, json.loads(row["payload"]))
        except (ValueError, TypeError, KeyError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Stored payload for {key} is unreadable, ignoring it: {e}")
            return None

    def save(self, key: str, portfolio: Portfolio | None) -> bool:
        """
        Store a portfolio under `key`, or remove the key when portfolio is None.

        Returns:
            True if the change was persisted
        """
        if portfolio is None:
            return self.delete(key)

        payload: str = json.dumps(asdict(portfolio), default=to_serialisable)
        try:
            _ = self.db.execute(
                """
                INSERT INTO portfolios (key, payload, updated_at)
                VALUES (:key, :payload, :updated_at)
                ON CONFLICT(key) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                {
                    "key": key,
                    "payload": payload,
                    "updated_at": datetime.now().isoformat(timespec="seconds"),
                },
            )
        except sqlite3.Error as e:
            logger.warning(f"Could not save {key}, keeping it in memory only: {e}")
            return False
        logger.debug(f"Saved {key} ({len(portfolio.holdings)} holdings)")
        return True

    def delete(self, key: str) -> bool:
        try:
            _ = self.db.execute("DELETE FROM portfolios WHERE key = ?", (key,))
        except sqlite3.Error as e:
            logger.warning(f"Could not delete {key} from storage: {e}")
            return False
        return True

    def keys(self) -> list[str]:
        try:
            rows: list[Row] = self.db.query_all("SELECT key FROM portfolios ORDER BY key")
        except sqlite3.Error as e:
            logger.warning(f"Could not list stored portfolios: {e}")
            return []
        return [row["key"] for row in rows]

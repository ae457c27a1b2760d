# src/storage/sqlite_product_store.py

"""SQLite-backed store for tracked products and price history."""

import logging
import re
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from src.config.settings import Settings
from src.models.price_history_point import PriceHistoryPoint
from src.models.tracked_product import TrackedProduct
from src.storage.product_store import TRACKED_FIELDS, ProductStore

logger = logging.getLogger("pricewatch.storage")

# Marketplace tracking params that vary per session
_TRACKING_PARAMS: frozenset[str] = frozenset({
    "ref", "ref_", "dib", "dib_tag", "qid", "sr", "spc",
    "sp_csd", "xpid", "aref", "sp_cr", "psc",
    "keywords", "pd_rd_i", "pd_rd_r", "pd_rd_w",
    "pd_rd_wg", "pf_rd_i", "pf_rd_m", "pf_rd_p",
    "pf_rd_r", "pf_rd_s", "pf_rd_t", "th",
    "lid", "marketplace", "srno", "otracker", "fm", "iid",
    "ssid", "utm_source", "utm_medium", "utm_campaign",
    "utm_term", "utm_content", "tag",
})

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS tracked_products (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id        TEXT    NOT NULL,
    url             TEXT    NOT NULL,
    name            TEXT    NOT NULL,
    current_price   REAL    NOT NULL,
    currency        TEXT    NOT NULL DEFAULT 'INR',
    image_url       TEXT,
    original_price  REAL,
    seller_name     TEXT,
    seller_rating   REAL,
    rating          REAL,
    review_count    INTEGER NOT NULL DEFAULT 0,
    platform_domain TEXT    NOT NULL DEFAULT '',
    deal_score      REAL,
    created_at      TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL,
    UNIQUE (owner_id, url)
);

CREATE TABLE IF NOT EXISTS price_history (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id  INTEGER NOT NULL
                REFERENCES tracked_products(id) ON DELETE CASCADE,
    price       REAL    NOT NULL,
    currency    TEXT    NOT NULL DEFAULT 'INR',
    observed_at TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_history_product_date
    ON price_history(product_id, observed_at);
"""

_COLUMNS = (
    "id, owner_id, url, name, current_price, currency, image_url, "
    "original_price, seller_name, seller_rating, rating, review_count, "
    "platform_domain, deal_score, created_at, updated_at"
)


def normalize_url(raw_url: str) -> str:
    """Strip tracking/session query params to get a stable product URL."""
    parsed = urlparse(raw_url.strip())

    # Strip Amazon path-based tracking (e.g. /ref=sr_1_243)
    path = re.sub(r"/ref=[^/]*", "", parsed.path)

    params = parse_qs(parsed.query, keep_blank_values=True)
    cleaned = {
        k: v for k, v in params.items()
        if k.lower() not in _TRACKING_PARAMS
    }
    new_query = urlencode(cleaned, doseq=True) if cleaned else ""
    return urlunparse((
        parsed.scheme,
        parsed.netloc.lower(),
        path,
        parsed.params,
        new_query,
        "",  # drop fragment
    ))


def _row_to_product(row: sqlite3.Row) -> TrackedProduct:
    return TrackedProduct(
        id=row["id"],
        owner_id=row["owner_id"],
        url=row["url"],
        name=row["name"],
        current_price=row["current_price"],
        currency=row["currency"],
        image_url=row["image_url"],
        original_price=row["original_price"],
        seller_name=row["seller_name"],
        seller_rating=row["seller_rating"],
        rating=row["rating"],
        review_count=row["review_count"],
        platform_domain=row["platform_domain"],
        deal_score=row["deal_score"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SQLiteProductStore(ProductStore):
    """SQLite implementation of :class:`ProductStore`."""

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.PRICE_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)
        logger.debug("SQLiteProductStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Tracked products ─────────────────────────────────

    def upsert_tracked_product(
        self, owner_id: str, url: str, fields: dict[str, Any],
    ) -> TrackedProduct:
        """Insert or update by normalised ``(owner_id, url)``."""
        unknown = set(fields) - set(TRACKED_FIELDS)
        if unknown:
            msg = f"Unknown tracked product fields: {sorted(unknown)}"
            raise ValueError(msg)

        norm = normalize_url(url)
        now = datetime.now().isoformat()
        values = {name: fields.get(name) for name in TRACKED_FIELDS}
        values["currency"] = values["currency"] or "INR"
        values["review_count"] = values["review_count"] or 0
        values["platform_domain"] = values["platform_domain"] or ""

        columns = ", ".join(TRACKED_FIELDS)
        placeholders = ", ".join("?" for _ in TRACKED_FIELDS)
        updates = ", ".join(
            f"{name}=excluded.{name}" for name in fields
        )
        conflict = (
            f"DO UPDATE SET {updates}, updated_at=excluded.updated_at"
            if updates else "DO UPDATE SET updated_at=excluded.updated_at"
        )
        self._conn.execute(
            f"INSERT INTO tracked_products "
            f"(owner_id, url, {columns}, created_at, updated_at) "
            f"VALUES (?, ?, {placeholders}, ?, ?) "
            f"ON CONFLICT(owner_id, url) {conflict}",
            (
                owner_id,
                norm,
                *(values[name] for name in TRACKED_FIELDS),
                now,
                now,
            ),
        )
        self._conn.commit()
        product = self.get_tracked_product(owner_id, norm)
        if product is None:
            msg = f"Upsert of {norm} for {owner_id} was not persisted"
            raise RuntimeError(msg)
        logger.info("Saved tracked product %d (%s)", product.id, norm)
        return product

    def update_tracked_product(
        self, product: TrackedProduct,
    ) -> TrackedProduct:
        if product.id is None:
            msg = "Cannot update a product that was never saved"
            raise ValueError(msg)
        product.updated_at = datetime.now()
        self._conn.execute(
            "UPDATE tracked_products SET "
            "name=?, current_price=?, currency=?, image_url=?, "
            "original_price=?, seller_name=?, seller_rating=?, "
            "rating=?, review_count=?, platform_domain=?, "
            "deal_score=?, updated_at=? "
            "WHERE id=? AND owner_id=?",
            (
                product.name,
                product.current_price,
                product.currency,
                product.image_url,
                product.original_price,
                product.seller_name,
                product.seller_rating,
                product.rating,
                product.review_count,
                product.platform_domain,
                product.deal_score,
                product.updated_at.isoformat(),
                product.id,
                product.owner_id,
            ),
        )
        self._conn.commit()
        return product

    def get_tracked_product(
        self, owner_id: str, url: str,
    ) -> TrackedProduct | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM tracked_products "
            "WHERE owner_id = ? AND url = ?",
            (owner_id, normalize_url(url)),
        ).fetchone()
        return _row_to_product(row) if row else None

    def get_tracked_product_by_id(
        self, product_id: int, owner_id: str,
    ) -> TrackedProduct | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM tracked_products "
            "WHERE id = ? AND owner_id = ?",
            (product_id, owner_id),
        ).fetchone()
        return _row_to_product(row) if row else None

    def list_tracked_products(
        self, owner_id: str,
    ) -> list[TrackedProduct]:
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM tracked_products "
            "WHERE owner_id = ? ORDER BY created_at DESC, id DESC",
            (owner_id,),
        ).fetchall()
        return [_row_to_product(r) for r in rows]

    def list_all_tracked_products(self) -> list[TrackedProduct]:
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM tracked_products ORDER BY id",
        ).fetchall()
        return [_row_to_product(r) for r in rows]

    def delete_tracked_product(
        self, product_id: int, owner_id: str,
    ) -> bool:
        cur = self._conn.execute(
            "DELETE FROM tracked_products WHERE id = ? AND owner_id = ?",
            (product_id, owner_id),
        )
        self._conn.commit()
        deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted tracked product %d", product_id)
        return deleted

    # ── Price history ────────────────────────────────────

    def append_price_history(
        self, product_id: int, price: float, currency: str,
    ) -> PriceHistoryPoint:
        observed_at = datetime.now()
        self._conn.execute(
            "INSERT INTO price_history "
            "(product_id, price, currency, observed_at) "
            "VALUES (?, ?, ?, ?)",
            (product_id, price, currency, observed_at.isoformat()),
        )
        self._conn.commit()
        logger.debug(
            "Recorded price %.2f %s for product %d",
            price, currency, product_id,
        )
        return PriceHistoryPoint(
            product_id=product_id,
            price=price,
            currency=currency,
            observed_at=observed_at,
        )

    def get_price_history(
        self, product_id: int,
    ) -> list[PriceHistoryPoint]:
        rows = self._conn.execute(
            "SELECT product_id, price, currency, observed_at "
            "FROM price_history WHERE product_id = ? "
            "ORDER BY observed_at ASC, id ASC",
            (product_id,),
        ).fetchall()
        return [
            PriceHistoryPoint(
                product_id=r["product_id"],
                price=r["price"],
                currency=r["currency"],
                observed_at=datetime.fromisoformat(r["observed_at"]),
            )
            for r in rows
        ]

    def get_trend_summary(
        self, product_id: int,
    ) -> dict[str, object] | None:
        """Compute min / max / avg / latest price for a product."""
        row = self._conn.execute(
            "SELECT MIN(price), MAX(price), AVG(price), COUNT(id) "
            "FROM price_history WHERE product_id = ?",
            (product_id,),
        ).fetchone()
        if row is None or row[3] == 0:
            return None
        latest_row = self._conn.execute(
            "SELECT price FROM price_history WHERE product_id = ? "
            "ORDER BY observed_at DESC, id DESC LIMIT 1",
            (product_id,),
        ).fetchone()
        latest_price: float = latest_row[0] if latest_row else 0.0
        return {
            "min": row[0],
            "max": row[1],
            "avg": round(row[2], 2),
            "count": row[3],
            "latest": latest_price,
        }

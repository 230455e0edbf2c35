from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MockStoreError(Exception):
    """Raised by the in-memory store where the real backend would reject a write."""


class MockTable:
    """One in-memory table with the subset of PostgREST semantics the site uses."""

    def __init__(
        self,
        name: str,
        *,
        defaults: Mapping[str, Any] | None = None,
        required: Iterable[str] = (),
    ) -> None:
        self.name = name
        self._defaults = dict(defaults or {})
        self._required = tuple(required)
        self._rows: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def rows(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(row) for row in self._rows.values()]

    @staticmethod
    def _matches(row: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
        if not filters:
            return True
        return all(row.get(column) == value for column, value in filters.items())

    def select(
        self,
        filters: Mapping[str, Any] | None = None,
        order: Sequence[Tuple[str, bool]] = (),
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        matches = [row for row in self._rows.values() if self._matches(row, filters)]
        # Apply the least significant key first; sorts are stable.
        for column, ascending in reversed(list(order)):
            matches.sort(
                key=lambda row: (row.get(column) is None, row.get(column) if row.get(column) is not None else ""),
                reverse=not ascending,
            )
        if limit is not None:
            matches = matches[:limit]
        return [copy.deepcopy(row) for row in matches]

    def count(self, filters: Mapping[str, Any] | None = None) -> int:
        return sum(1 for row in self._rows.values() if self._matches(row, filters))

    def insert(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        for column in self._required:
            if record.get(column) in (None, ""):
                raise MockStoreError(
                    f'null value in column "{column}" of relation "{self.name}" violates not-null constraint'
                )
        row: Dict[str, Any] = {"id": str(uuid.uuid4()), "created_at": _utc_now_iso()}
        row.update(copy.deepcopy(self._defaults))
        for key, value in record.items():
            # Explicit nulls fall back to the column default.
            if value is None and key in self._defaults:
                continue
            row[key] = copy.deepcopy(value)
        self._rows[row["id"]] = row
        return copy.deepcopy(row)

    def update(self, key: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        updated = 0
        for row in self._rows.values():
            if self._matches(row, key):
                row.update(copy.deepcopy(dict(patch)))
                row["updated_at"] = _utc_now_iso()
                updated += 1
        return updated

    def delete(self, key: Mapping[str, Any]) -> int:
        doomed = [row_id for row_id, row in self._rows.items() if self._matches(row, key)]
        for row_id in doomed:
            del self._rows[row_id]
        return len(doomed)

    def upsert(self, record: Mapping[str, Any], on_conflict: str) -> Dict[str, Any]:
        for row in self._rows.values():
            if row.get(on_conflict) == record.get(on_conflict):
                row.update(copy.deepcopy(dict(record)))
                row["updated_at"] = _utc_now_iso()
                return copy.deepcopy(row)
        return self.insert(record)


class MockStorage:
    """Object storage buckets keyed by path."""

    def __init__(self) -> None:
        self._objects: Dict[str, Dict[str, Tuple[bytes, str]]] = {}

    def upload(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        objects = self._objects.setdefault(bucket, {})
        if path in objects:
            raise MockStoreError("The resource already exists")
        objects[path] = (bytes(content), content_type)
        return path

    def get(self, bucket: str, path: str) -> Optional[Tuple[bytes, str]]:
        return self._objects.get(bucket, {}).get(path)

    def paths(self, bucket: str) -> List[str]:
        return sorted(self._objects.get(bucket, {}))


def _seed_services(table: MockTable) -> None:
    seeds = [
        {
            "name": "Hair Cut",
            "description": "Precision haircuts tailored to your style. From classic fades to modern textures.",
            "price": 35.0,
            "duration_minutes": 30,
        },
        {
            "name": "Beard Styling",
            "description": "Hot towel treatment, precise shaping and conditioning for the distinguished gentleman.",
            "price": 25.0,
            "duration_minutes": 30,
        },
        {
            "name": "Hair Wash",
            "description": "Relaxing hair wash with premium products and scalp massage.",
            "price": 15.0,
            "duration_minutes": 15,
        },
        {
            "name": "Premium Grooming",
            "description": "Haircut, beard styling, hot towel treatment and facial grooming. The ultimate package.",
            "price": 75.0,
            "duration_minutes": 90,
        },
    ]
    for display_order, record in enumerate(seeds):
        table.insert(
            {
                **record,
                "image_url": None,
                "is_active": True,
                "display_order": display_order,
            }
        )


@dataclass
class MockDataStore:
    tables: Dict[str, MockTable]
    storage: MockStorage = field(default_factory=MockStorage)

    def table(self, name: str) -> MockTable:
        try:
            return self.tables[name]
        except KeyError:
            raise MockStoreError(f'relation "public.{name}" does not exist') from None


_mock_store: Optional[MockDataStore] = None

_TABLE_FACTORIES: Dict[str, Callable[[], MockTable]] = {
    "appointments": lambda: MockTable(
        "appointments",
        defaults={"status": "pending", "notes": None},
        required=("customer_name", "service_name", "appointment_date", "appointment_time"),
    ),
    "customers": lambda: MockTable("customers", required=("name",)),
    "services": lambda: MockTable(
        "services",
        defaults={"is_active": True, "display_order": 0},
        required=("name",),
    ),
    "gallery": lambda: MockTable(
        "gallery",
        defaults={"is_featured": False, "display_order": 0},
        required=("image_url",),
    ),
    "site_settings": lambda: MockTable("site_settings", required=("key",)),
}


def get_mock_store() -> MockDataStore:
    global _mock_store
    if _mock_store is None:
        tables = {name: factory() for name, factory in _TABLE_FACTORIES.items()}
        _seed_services(tables["services"])
        _mock_store = MockDataStore(tables=tables)
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None

"""Primary record stores: the source of truth for a record's image list."""
import asyncio
import os
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

from listingmedia.models.record import AttachmentRecord, Page
from listingmedia.utils.io import build_path, read_model_json, remove_file, write_model
from listingmedia.utils.pagination import paginate_items
from listingmedia.utils.validation import validate_id

R = TypeVar('R', bound=AttachmentRecord)


class RecordStore(ABC, Generic[R]):
    """Per-record atomic persistence for one record type."""

    def __init__(self, record_type: type[R]):
        self.record_type = record_type

    @abstractmethod
    async def find(self, record_id: str) -> R | None:
        """Return the record or None when it does not exist."""

    @abstractmethod
    async def save(self, record: R) -> R:
        """Insert or replace a record."""

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Remove a record. Removing a missing record is a no-op."""

    @abstractmethod
    async def all(self) -> list[R]:
        """Every stored record."""

    async def list(
        self,
        page: int = 1,
        limit: int = 10,
        predicate: Callable[[R], bool] | None = None
    ) -> Page[R]:
        return paginate_items(await self.all(), page, limit, predicate)


class InMemoryRecordStore(RecordStore[R]):
    """Dict-backed store. Hands out copies so callers never mutate stored state."""

    def __init__(self, record_type: type[R]):
        super().__init__(record_type)
        self._records: dict[str, R] = {}
        self._lock = asyncio.Lock()

    async def find(self, record_id: str) -> R | None:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    async def save(self, record: R) -> R:
        validate_id(record.id, "Record ID")
        async with self._lock:
            self._records[record.id] = record.model_copy(deep=True)
        return record

    async def delete(self, record_id: str) -> None:
        async with self._lock:
            self._records.pop(record_id, None)

    async def all(self) -> list[R]:
        return [record.model_copy(deep=True) for record in self._records.values()]


class JsonFileRecordStore(RecordStore[R]):
    """Stores each record as '<data_dir>/<record type>/<id>.json'."""

    def __init__(self, record_type: type[R], data_dir: str):
        super().__init__(record_type)
        self.directory = os.path.join(data_dir, record_type.__name__.lower())
        self._lock = asyncio.Lock()

    def _path(self, record_id: str) -> str:
        validate_id(record_id, "Record ID")
        return build_path(self.directory, f'{record_id}.json')

    async def find(self, record_id: str) -> R | None:
        try:
            data = await asyncio.to_thread(read_model_json, self._path(record_id))
        except FileNotFoundError:
            return None
        return self.record_type.model_validate(data)

    async def save(self, record: R) -> R:
        async with self._lock:
            await asyncio.to_thread(write_model, record, self._path(record.id))
        return record

    async def delete(self, record_id: str) -> None:
        path = self._path(record_id)
        async with self._lock:
            if os.path.exists(path):
                await asyncio.to_thread(remove_file, path)

    async def all(self) -> list[R]:
        if not os.path.isdir(self.directory):
            return []
        records: list[R] = []
        for filename in sorted(os.listdir(self.directory)):
            if not filename.endswith('.json'):
                continue
            try:
                data = await asyncio.to_thread(read_model_json, os.path.join(self.directory, filename))
            except FileNotFoundError:
                # deleted since the directory was listed
                continue
            records.append(self.record_type.model_validate(data))
        logger.debug(f"Loaded {len(records)} {self.record_type.__name__} records from {self.directory}")
        return records

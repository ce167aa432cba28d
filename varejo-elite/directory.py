"""
In-memory directory of the session's stores.

The repository is the source of truth. Every mutation is persisted first and
applied to the in-memory list only when the repository accepts it, so after
a successful call the list never disagrees with storage.
"""
import logging
from typing import List, Optional, Tuple

import config
from repository import RepositoryError, StoreRepository
from schemas import Store, check_store_integrity, new_store

logger = logging.getLogger(__name__)


class StoreValidationError(ValueError):
    def __init__(self, messages: List[str]):
        self.messages = messages
        super().__init__("; ".join(messages))


class UnknownStoreError(LookupError):
    pass


class StoreDirectory:
    def __init__(self, repository: StoreRepository):
        self._repository = repository
        self._stores: List[Store] = []

    @property
    def stores(self) -> Tuple[Store, ...]:
        return tuple(self._stores)

    def __len__(self) -> int:
        return len(self._stores)

    def get(self, index: Optional[int]) -> Optional[Store]:
        if index is None or not 0 <= index < len(self._stores):
            return None
        return self._stores[index]

    def index_of(self, store_id: str) -> Optional[int]:
        for index, store in enumerate(self._stores):
            if store.id == store_id:
                return index
        return None

    def index_of_code(self, code: str) -> Optional[int]:
        for index, store in enumerate(self._stores):
            if store.code == code:
                return index
        return None

    def find_by_code(self, code: str) -> Optional[Store]:
        """First store whose code matches exactly (case-sensitive)."""
        return self.get(self.index_of_code(code))

    async def load(self) -> bool:
        """Replaces the directory with the repository contents. Empty on failure."""
        try:
            stores = await self._repository.list_stores()
        except RepositoryError as e:
            logger.error("Could not load stores, starting with an empty directory: %s", e)
            self._stores = []
            return False
        self._stores = list(stores)
        logger.info("Loaded %d stores.", len(self._stores))
        return True

    def _validate(self, store: Store) -> None:
        others = [s for s in self._stores if s.id != store.id]
        ok, messages = check_store_integrity(store, others)
        if not ok:
            raise StoreValidationError(messages)

    async def add(self, store: Store) -> bool:
        if self.index_of(store.id) is not None:
            raise StoreValidationError([f"Store {store.id} is already in the directory."])
        self._validate(store)
        try:
            saved = await self._repository.upsert_store(store)
        except RepositoryError as e:
            logger.error("Store %s was not added: %s", store.code, e)
            return False
        self._stores.append(saved)
        return True

    async def replace(self, store: Store) -> bool:
        """Saves a new version of an existing store, keeping its position."""
        index = self.index_of(store.id)
        if index is None:
            raise UnknownStoreError(store.id)
        self._validate(store)
        try:
            saved = await self._repository.upsert_store(store)
        except RepositoryError as e:
            logger.error("Store %s was not updated: %s", store.code, e)
            return False
        self._stores[index] = saved
        return True

    async def remove(self, store_id: str) -> bool:
        """Deletes a store. Stores after it move one position down."""
        index = self.index_of(store_id)
        if index is None:
            raise UnknownStoreError(store_id)
        try:
            deleted = await self._repository.delete_store(store_id)
        except RepositoryError as e:
            logger.error("Store %s was not deleted: %s", store_id, e)
            return False
        if not deleted:
            logger.warning("Store %s was already gone from storage.", store_id)
        del self._stores[index]
        return True

    def next_store_code(self) -> str:
        number = len(self._stores) + 1
        while self.index_of_code(f"{config.NEW_STORE_CODE_PREFIX}{number}") is not None:
            number += 1
        return f"{config.NEW_STORE_CODE_PREFIX}{number}"

    async def create_store(self) -> Optional[Store]:
        """Adds a store seeded with the default KPIs and tier tables."""
        store = new_store(self.next_store_code())
        if not await self.add(store):
            return None
        return self._stores[-1]

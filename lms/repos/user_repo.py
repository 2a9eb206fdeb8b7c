from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.user import User
from lms.repos.errors import DuplicateKeyError


class UserRepo(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...
    async def get_by_customer_id(self, customer_id: str) -> User | None: ...
    async def add(self, user: User) -> None: ...
    async def save(self, user: User) -> None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, User] = {}
        self._by_customer_id: dict[str, User] = {}

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_customer_id(self, customer_id: str) -> User | None:
        return self._by_customer_id.get(customer_id)

    async def add(self, user: User) -> None:
        if user.shopify_customer_id in self._by_customer_id:
            raise DuplicateKeyError(f"customer {user.shopify_customer_id}")
        self._by_id[user.id] = user
        self._by_customer_id[user.shopify_customer_id] = user

    async def save(self, user: User) -> None:
        if user.id not in self._by_id:
            raise KeyError("user not found")
        self._by_id[user.id] = user
        self._by_customer_id[user.shopify_customer_id] = user

    def __len__(self) -> int:
        return len(self._by_id)

    def clear(self) -> None:
        self._by_id.clear()
        self._by_customer_id.clear()

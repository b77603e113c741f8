"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: typing.py
@DateTime: 2026-02-08
@Docs: Shared protocols and types for the import/export pipeline.
导入导出流水线共享协议与类型。
"""

from collections.abc import AsyncIterable, AsyncIterator, Mapping, Sequence
from typing import Any, Protocol

from catalog_import_export.records import Change, DomainEntity, ExistingEntity, NaturalKey

type ByteStream = AsyncIterable[bytes]


class EntityStore(Protocol):
    """
    Persistence collaborator used by the resolver, committer and exporter.
    解析器、提交器与导出器使用的持久化协作方。
    """

    async def fetch_existing(self, keys: Sequence[NaturalKey]) -> Mapping[NaturalKey, ExistingEntity]:
        """Return the already-persisted entities among `keys` (one round trip).
        返回 `keys` 中已持久化的实体（一次往返）。
        """
        ...

    async def apply_batch(self, changes: Sequence[Change]) -> None:
        """Apply all changes in one transaction; raise to roll the batch back.
        在单个事务中应用全部变更；抛出异常即回滚整批。
        """
        ...

    def iter_entities(self, filters: Mapping[str, Any] | None = None) -> AsyncIterator[DomainEntity]:
        """Stream persisted entities for export.
        流式读取已持久化实体用于导出。
        """
        ...


class ReferenceResolver(Protocol):
    """
    Resolves foreign references between natural values and storage ids.
    在自然值与存储 ID 之间解析外部引用。
    """

    async def resolve(self, lookup: str, value: Any) -> Any | None:
        """Return the id for `value`, or None when it does not exist.
        返回 `value` 对应的 ID，不存在时返回 None。
        """
        ...

    async def reverse(self, lookup: str, ident: Any) -> Any | None:
        """Return the natural value for `ident`, or None.
        返回 `ident` 对应的自然值，或 None。
        """
        ...


class RedisLike(Protocol):
    """A minimal Redis client protocol used for locking.

    用于锁的最小 Redis 客户端协议。

    Methods may return either direct values or awaitables, so both the sync
    and asyncio redis-py clients fit.
    方法可以返回普通值或可 await 的对象，兼容 redis-py 同步与异步客户端。
    """

    def set(self, *args: Any, **kwargs: Any) -> Any: ...

    def get(self, *args: Any, **kwargs: Any) -> Any: ...

    def delete(self, *args: Any, **kwargs: Any) -> Any: ...

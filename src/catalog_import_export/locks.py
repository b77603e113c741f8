"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: locks.py
@DateTime: 2026-02-10
@Docs: Redis advisory locks on natural keys across concurrent imports.
基于 Redis 的自然键协作锁，用于并发导入之间。
"""

import inspect
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

import uuid6

from catalog_import_export.exceptions import BatchCommitError
from catalog_import_export.records import NaturalKey
from catalog_import_export.typing import RedisLike

logger = logging.getLogger(__name__)


async def _maybe_await(value: Any) -> Any:
    """Await a value if it is awaitable, otherwise return it as-is.

    如果是 awaitable，await 后返回；否则直接返回。
    """
    if inspect.isawaitable(value):
        return await value
    return value


def _as_text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class KeyLock:
    """Advisory lock over a set of natural keys.

    一组自然键上的协作锁。

    Each key becomes `{namespace}:lock:{key}` set with NX and a TTL. Keys are
    taken in sorted order; only keys still holding our token are released.
    每个键对应 `{namespace}:lock:{key}`，使用 NX 与 TTL 设置；按排序顺序加锁，
    释放时只删除仍持有本方令牌的键。

    Examples:
        >>> lock = KeyLock(redis_client, namespace="catalog")
        >>> # async with lock.hold([("A1",)]):
        >>> #     ...
    """

    def __init__(self, redis_client: RedisLike, *, namespace: str = "catalog-import", ttl_seconds: int = 300) -> None:
        self.redis_client = redis_client
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds

    def key_name(self, key: NaturalKey) -> str:
        return f"{self.namespace}:lock:" + "|".join(_as_text(part) for part in key)

    @asynccontextmanager
    async def hold(self, keys: Iterable[NaturalKey]) -> AsyncIterator[None]:
        """Hold the lock for every key for the duration of the block.

        在代码块执行期间持有所有键的锁。

        Raises:
            BatchCommitError: When any key is held by another import.
                任一键被其它导入持有时抛出。
        """
        token = str(uuid6.uuid7())
        names = sorted({self.key_name(k) for k in keys})
        acquired: list[str] = []
        try:
            for name in names:
                ok = await _maybe_await(self.redis_client.set(name, token, ex=self.ttl_seconds, nx=True))
                if not ok:
                    logger.warning("Advisory lock busy: %s", name)
                    raise BatchCommitError(
                        message="Locked by another import / 已被其它导入锁定",
                        details={"lock": name},
                        error_code="key_locked",
                    )
                acquired.append(name)
            yield
        finally:
            await self._release(acquired, token)

    async def _release(self, names: list[str], token: str) -> None:
        for name in names:
            try:
                # Non-atomic GET+DELETE; a lock that expired and was re-taken is left alone.
                current = await _maybe_await(self.redis_client.get(name))
                if current is not None and _as_text(current) == token:
                    await _maybe_await(self.redis_client.delete(name))
            except Exception:
                logger.warning("Failed to release advisory lock %s; it expires after %ss", name, self.ttl_seconds)

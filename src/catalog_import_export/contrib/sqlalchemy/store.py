"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: store.py
@DateTime: 2026-02-10
@Docs: SQLAlchemy async EntityStore and ReferenceResolver.
SQLAlchemy 异步 EntityStore 与 ReferenceResolver 实现。
"""

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_import_export.exceptions import ExportError, SchemaError
from catalog_import_export.records import Change, ChangeKind, DomainEntity, ExistingEntity, NaturalKey

logger = logging.getLogger(__name__)


def _mapped_attributes(model: Any, primary_key: str) -> tuple[str, ...]:
    mapper = sa.inspect(model)
    return tuple(attr.key for attr in mapper.column_attrs if attr.key != primary_key)


class SqlAlchemyEntityStore:
    """
    EntityStore backed by one SQLAlchemy ORM model and an AsyncSession.
    基于单个 SQLAlchemy ORM 模型与 AsyncSession 的 EntityStore。

    The store owns its session for one run. Entity attribute names are model
    attribute names; the primary key is the surrogate id.
    每次运行独占一个会话；实体属性名即模型属性名，主键为代理 ID。

    Args:
        session: Async session.
            异步会话。
        model: ORM model class.
            ORM 模型类。
        natural_key: Attributes forming the natural key (unique in the table).
            组成自然键的属性（在表中唯一）。
        attributes: Attributes loaded for comparison and export (default: all but the primary key).
            用于比较与导出的属性（默认：除主键外的全部属性）。
        primary_key: Primary key attribute.
            主键属性名。
        stream_batch_size: Rows fetched per round trip when exporting.
            导出时每次往返读取的行数。
    """

    def __init__(
        self,
        session: AsyncSession,
        model: Any,
        *,
        natural_key: Sequence[str],
        attributes: Sequence[str] | None = None,
        primary_key: str = "id",
        stream_batch_size: int = 500,
    ) -> None:
        self.session = session
        self.model = model
        self.natural_key = tuple(natural_key)
        self.attributes = tuple(attributes) if attributes is not None else _mapped_attributes(model, primary_key)
        self.primary_key = primary_key
        self.stream_batch_size = stream_batch_size
        missing = [name for name in (*self.natural_key, primary_key) if not hasattr(model, name)]
        if missing:
            raise SchemaError(
                message=f"Model {model.__name__} has no attributes {missing} / 模型 {model.__name__} 缺少属性 {missing}"
            )

    def _select(self) -> Any:
        pk = getattr(self.model, self.primary_key).label(self.primary_key)
        return sa.select(pk, *(getattr(self.model, name).label(name) for name in self.attributes))

    def _existing(self, row: Mapping[str, Any]) -> ExistingEntity:
        entity = DomainEntity(
            natural_key=tuple(row[name] for name in self.natural_key),
            attributes=MappingProxyType({name: row[name] for name in self.attributes}),
        )
        return ExistingEntity(surrogate_id=row[self.primary_key], entity=entity)

    async def fetch_existing(self, keys: Sequence[NaturalKey]) -> Mapping[NaturalKey, ExistingEntity]:
        """Load the stored entities among `keys` in one query.
        一次查询加载 `keys` 中已存储的实体。
        """
        if not keys:
            return {}
        columns = [getattr(self.model, name) for name in self.natural_key]
        if len(columns) == 1:
            condition = columns[0].in_([key[0] for key in keys])
        else:
            condition = sa.tuple_(*columns).in_([tuple(key) for key in keys])
        result = await self.session.execute(self._select().where(condition))
        found: dict[NaturalKey, ExistingEntity] = {}
        for row in result.mappings():
            existing = self._existing(row)
            found[existing.entity.natural_key] = existing
        return found

    async def apply_batch(self, changes: Sequence[Change]) -> None:
        """Apply a batch with ORM bulk INSERT and bulk UPDATE by primary key, in one transaction.

        以 ORM 批量 INSERT 与按主键批量 UPDATE 在单个事务中应用整批变更。

        Unchanged updates are not written. Any error rolls the whole batch back.
        未变化的更新不写入；任何错误都会回滚整批。
        """
        inserts = [dict(change.entity.attributes) for change in changes if change.kind is ChangeKind.INSERT]
        updates = [
            {self.primary_key: change.surrogate_id, **change.entity.attributes}
            for change in changes
            if change.kind is ChangeKind.UPDATE and change.changed
        ]
        if self.session.in_transaction():
            # End the read transaction opened by fetch_existing.
            await self.session.commit()
        async with self.session.begin():
            if inserts:
                await self.session.execute(sa.insert(self.model), inserts)
            if updates:
                await self.session.execute(sa.update(self.model), updates)
        logger.debug("Applied %d inserts, %d updates to %s", len(inserts), len(updates), self.model.__name__)

    def _filtered(self, stmt: Any, filters: Mapping[str, Any] | None) -> Any:
        for name, value in (filters or {}).items():
            col = getattr(self.model, name, None) if name in (*self.attributes, self.primary_key) else None
            if col is None:
                raise ExportError(
                    message=f"Unknown filter field: {name} / 未知过滤字段: {name}",
                    details={"field": name, "allowed": list(self.attributes)},
                    error_code="invalid_filter",
                )
            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(col.in_(list(value)))
            else:
                stmt = stmt.where(col == value)
        return stmt

    async def iter_entities(self, filters: Mapping[str, Any] | None = None) -> AsyncIterator[DomainEntity]:
        """Stream stored entities ordered by primary key.

        按主键顺序流式读取已存储实体。

        Raises:
            ExportError: When a filter names an unknown attribute.
                过滤条件包含未知属性时抛出。
        """
        stmt = self._filtered(self._select(), filters).order_by(getattr(self.model, self.primary_key))
        result = await self.session.stream(stmt.execution_options(yield_per=self.stream_batch_size))
        async for row in result.mappings():
            yield self._existing(row).entity


@dataclass(frozen=True, slots=True)
class LookupSpec:
    """
    How a reference lookup maps natural values to ids.
    引用查找如何将自然值映射为 ID。

    Attributes:
        model: Referenced ORM model.
        model: 被引用的 ORM 模型。
        natural: Attribute holding the natural value (e.g. name).
        natural: 保存自然值的属性（例如 name）。
        identity: Attribute holding the id.
        identity: 保存 ID 的属性。
    """

    model: Any
    natural: str
    identity: str = "id"


class SqlAlchemyReferenceResolver:
    """
    ReferenceResolver answering lookups with single-row queries.
    通过单行查询应答引用查找的 ReferenceResolver。

    Callers cache answers (see EntityMapper), so each distinct value is queried
    at most once per run.
    调用方会缓存结果（见 EntityMapper），因此每次运行中每个不同值最多查询一次。
    """

    def __init__(self, session: AsyncSession, lookups: Mapping[str, LookupSpec]) -> None:
        self.session = session
        self.lookups = dict(lookups)

    def _spec(self, lookup: str) -> LookupSpec:
        spec = self.lookups.get(lookup)
        if spec is None:
            raise SchemaError(message=f"Unknown reference lookup: {lookup} / 未知引用查找: {lookup}")
        return spec

    async def resolve(self, lookup: str, value: Any) -> Any | None:
        spec = self._spec(lookup)
        stmt = sa.select(getattr(spec.model, spec.identity)).where(getattr(spec.model, spec.natural) == value)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def reverse(self, lookup: str, ident: Any) -> Any | None:
        spec = self._spec(lookup)
        stmt = sa.select(getattr(spec.model, spec.natural)).where(getattr(spec.model, spec.identity) == ident)
        return (await self.session.execute(stmt)).scalar_one_or_none()

"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: mapper.py
@DateTime: 2026-02-09
@Docs: Record <-> entity mapping with cached reference resolution.
记录与实体之间的映射，带引用解析缓存。
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from catalog_import_export.exceptions import ExportError, ReferenceNotFoundError, SchemaError
from catalog_import_export.records import DomainEntity, NormalizedRecord
from catalog_import_export.typing import ReferenceResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReferenceSpec:
    """
    A record field that names another entity by its natural value.
    通过自然值引用其它实体的记录字段。

    Attributes:
        field: Record field holding the natural value (e.g. category name).
        field: 保存自然值的记录字段（例如分类名）。
        target: Entity attribute receiving the resolved id (e.g. category_id).
        target: 接收解析后 ID 的实体属性（例如 category_id）。
        lookup: Namespace passed to the ReferenceResolver.
        lookup: 传给 ReferenceResolver 的命名空间。
    """

    field: str
    target: str
    lookup: str


class EntityMapper:
    """
    Maps validated records to domain entities and back.
    将校验后的记录映射为领域实体，并支持反向映射。

    One instance lives for one import or export run; its reference cache is
    never shared across runs.
    每个实例只服务一次导入或导出；引用缓存不在多次运行间共享。
    """

    def __init__(
        self,
        *,
        natural_key: Sequence[str],
        references: Sequence[ReferenceSpec] = (),
        resolver: ReferenceResolver | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        if references and resolver is None:
            raise SchemaError(message="References need a resolver / 声明引用时必须提供解析器")
        self.natural_key = tuple(natural_key)
        self.references = tuple(references)
        self._resolver = resolver
        self._defaults = dict(defaults or {})
        self._forward: dict[tuple[str, Any], Any] = {}
        self._inverse: dict[tuple[str, Any], Any] = {}

    async def to_entity(self, record: NormalizedRecord) -> DomainEntity:
        """Map a record to an entity.

        将记录映射为实体。

        Args:
            record: Validated record.
                已校验的记录。

        Returns:
            DomainEntity: Mapped entity.
                映射后的实体。

        Raises:
            ReferenceNotFoundError: When a referenced entity does not exist.
                被引用实体不存在时抛出。
        """
        attrs: dict[str, Any] = dict(self._defaults)
        attrs.update({k: v for k, v in record.values.items() if v is not None or k not in attrs})
        for ref in self.references:
            value = attrs.pop(ref.field, None)
            attrs[ref.target] = None if value is None else await self._resolve(ref, value)
        try:
            key = tuple(attrs[name] for name in self.natural_key)
        except KeyError as exc:
            raise SchemaError(
                message=f"Natural key attribute missing: {exc.args[0]} / 缺少自然键属性: {exc.args[0]}"
            ) from exc
        return DomainEntity(natural_key=key, attributes=MappingProxyType(attrs))

    async def to_record(self, entity: DomainEntity) -> dict[str, Any]:
        """Map an entity back to record values (inverse of `to_entity`).

        将实体映射回记录值（`to_entity` 的逆操作）。

        Raises:
            ExportError: When a stored reference id cannot be reversed.
                存储的引用 ID 无法反查时抛出。
        """
        values = dict(entity.attributes)
        for ref in self.references:
            ident = values.pop(ref.target, None)
            values[ref.field] = None if ident is None else await self._reverse(ref, ident)
        return values

    async def _resolve(self, ref: ReferenceSpec, value: Any) -> Any:
        cache_key = (ref.lookup, value)
        if cache_key in self._forward:
            ident = self._forward[cache_key]
        else:
            assert self._resolver is not None
            ident = await self._resolver.resolve(ref.lookup, value)
            self._forward[cache_key] = ident
            if ident is not None:
                self._inverse.setdefault((ref.lookup, ident), value)
        if ident is None:
            raise ReferenceNotFoundError(column=ref.field, lookup=ref.lookup, value=value)
        return ident

    async def _reverse(self, ref: ReferenceSpec, ident: Any) -> Any:
        cache_key = (ref.lookup, ident)
        if cache_key in self._inverse:
            return self._inverse[cache_key]
        assert self._resolver is not None
        value = await self._resolver.reverse(ref.lookup, ident)
        if value is None:
            logger.warning("Dangling %s reference id=%s", ref.lookup, ident)
            raise ExportError(
                message=f"Dangling {ref.lookup} reference: {ident} / 悬空的{ref.lookup}引用: {ident}",
                status_code=500,
                error_code="dangling_reference",
            )
        self._inverse[cache_key] = value
        return value

"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: models.py
@DateTime: 2026-02-10
@Docs: SQLAlchemy ORM models for the catalog.
目录的 SQLAlchemy ORM 模型。
"""

from decimal import Decimal
from enum import StrEnum

from sqlalchemy import Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base. / SQLAlchemy 声明式基类。"""


class Color(StrEnum):
    RED = "RED"
    PINK = "PINK"
    GREEN = "GREEN"
    PURPLE = "PURPLE"
    BLACK = "BLACK"
    WHITE = "WHITE"


class Category(Base):
    """Category table model.
    分类表模型。
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class CatalogItem(Base):
    """Catalog item table model; `sku` is the natural key.
    目录条目表模型；`sku` 为自然键。
    """

    __tablename__ = "catalog_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False, default=0)
    color: Mapped[Color | None] = mapped_column(Enum(Color, name="color"), nullable=True)
    cotton_part: Mapped[int | None] = mapped_column(nullable=True)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True)

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, Table, Index, func
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


ARTICLE_STATUSES = ("draft", "scheduled", "published", "archived")
PUBLISHED = "published"


article_tags = Table(
    "article_tags",
    Base.metadata,
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Index("ix_article_tags_tag", "tag_id"),
)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "slug": self.slug}


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)

    def to_dict(self):
        return {"id": self.id, "name": self.name, "slug": self.slug}


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    slug = Column(String(500), nullable=False, unique=True)
    summary = Column(Text)
    content = Column(Text)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), index=True)
    status = Column(String(20), nullable=False, default="draft", index=True)  # draft|scheduled|published|archived
    published_at = Column(DateTime(timezone=True))
    view_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    category = relationship("Category", lazy="raise")
    tags = relationship("Tag", secondary=article_tags, lazy="raise")

    __table_args__ = (
        Index("ix_articles_status_published", "status", "published_at"),
        Index("ix_articles_view_count", "view_count"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "summary": self.summary,
            "category_id": self.category_id,
            "status": self.status,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "view_count": self.view_count or 0,
        }

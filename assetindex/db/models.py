"""SQLAlchemy ORM models for the content index.

Entity Hierarchy:
    Folder (self-referential parent_id forest) -> File <-> Tag (via FileTag)
    HistoryRecord and TrashItem are append-only side tables.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Folder(Base):
    """Folder - node of the folder forest.

    Note: sort_order is only meaningful among siblings sharing a parent_id.
    """

    __tablename__ = "folders"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    parent_id = Column(String(64), ForeignKey("folders.id"), nullable=True)
    color = Column(String(16), nullable=True)
    icon = Column(String(50), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    # Relationships
    parent = relationship("Folder", remote_side=[id])
    files = relationship("File", back_populates="folder")

    # Indexes
    __table_args__ = (
        Index("idx_folders_parent_id", "parent_id"),
        Index("idx_folders_parent_sort", "parent_id", "sort_order"),
    )

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, name={self.name}, parent_id={self.parent_id})>"


class File(Base):
    """File - a stored asset, owned by exactly one folder (or the root)."""

    __tablename__ = "files"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    storage_path = Column(String(1024), nullable=False)
    thumbnail_path = Column(String(1024), nullable=True)
    mime_type = Column(String(100), nullable=False)
    size = Column(BigInteger, nullable=False, default=0)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    dominant_color = Column(String(16), nullable=True)  # #RRGGBB
    rating = Column(Integer, nullable=False, default=0)  # 0-5
    annotation = Column(Text, nullable=True)
    folder_id = Column(String(64), ForeignKey("folders.id"), nullable=True)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    # Relationships
    folder = relationship("Folder", back_populates="files")
    tags = relationship("FileTag", back_populates="file")

    # Indexes
    __table_args__ = (
        Index("idx_files_folder_id", "folder_id"),
        Index("idx_files_created_at", "created_at"),
        Index("idx_files_mime_type", "mime_type"),
        Index("idx_files_rating", "rating"),
    )

    def __repr__(self) -> str:
        return f"<File(id={self.id}, original_name={self.original_name})>"


class Tag(Base):
    """Tag - free-form label attached to files."""

    __tablename__ = "tags"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=False)
    color = Column(String(16), nullable=True)
    created_at = Column(BigInteger, nullable=False)

    files = relationship("FileTag", back_populates="tag")

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name})>"


class FileTag(Base):
    """FileTag - many-to-many association between File and Tag."""

    __tablename__ = "file_tags"

    file_id = Column(String(64), ForeignKey("files.id"), primary_key=True)
    tag_id = Column(String(64), ForeignKey("tags.id"), primary_key=True)

    file = relationship("File", back_populates="tags")
    tag = relationship("Tag", back_populates="files")

    __table_args__ = (Index("idx_file_tags_tag_id", "tag_id"),)

    def __repr__(self) -> str:
        return f"<FileTag(file_id={self.file_id}, tag_id={self.tag_id})>"


class HistoryRecord(Base):
    """HistoryRecord - audit trail entry for a file or folder mutation.

    entity_id is deliberately not a foreign key: records outlive the
    entities they describe.
    """

    __tablename__ = "history"

    id = Column(String(64), primary_key=True)
    entity_id = Column(String(64), nullable=False)
    entity_name = Column(String(255), nullable=False)
    action = Column(String(16), nullable=False)
    details = Column(Text, nullable=True)  # JSON
    actor_id = Column(String(64), nullable=True)
    is_folder = Column(Boolean, nullable=False, default=False)
    created_at = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index("idx_history_entity_id", "entity_id"),
        Index("idx_history_created_at", "created_at"),
        Index("idx_history_action", "action"),
    )

    def __repr__(self) -> str:
        return f"<HistoryRecord(id={self.id}, action={self.action}, entity_id={self.entity_id})>"


class TrashItem(Base):
    """TrashItem - restorable snapshot of a deleted file."""

    __tablename__ = "trash"

    id = Column(String(64), primary_key=True)
    file_id = Column(String(64), nullable=False)
    original_name = Column(String(255), nullable=False)
    original_path = Column(String(1024), nullable=False)
    thumbnail_path = Column(String(1024), nullable=True)
    mime_type = Column(String(100), nullable=False)
    size = Column(BigInteger, nullable=False, default=0)
    folder_id = Column(String(64), nullable=True)
    folder_name = Column(String(255), nullable=True)
    deleted_by = Column(String(64), nullable=True)
    deleted_at = Column(BigInteger, nullable=False)

    __table_args__ = (Index("idx_trash_deleted_at", "deleted_at"),)

    def __repr__(self) -> str:
        return f"<TrashItem(id={self.id}, file_id={self.file_id})>"

"""Folder model - hierarchical grouping of media items."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from folder_exporter.database import Base


class Folder(Base):
    """Virtual folder node. parent_id NULL (or 0) means a root folder."""

    __tablename__ = "folders"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    parent_id = Column(Integer, ForeignKey("folders.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship("MediaItem", back_populates="folder", lazy="dynamic")

    @property
    def item_count(self) -> int:
        return self.items.count()

    @property
    def is_root(self) -> bool:
        return not self.parent_id

    def __repr__(self):
        return f"<Folder {self.id} {self.name!r}>"

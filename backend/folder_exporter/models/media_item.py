"""Media item model."""
from sqlalchemy import Column, Integer, String, Text, BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from folder_exporter.database import Base


class MediaItem(Base):
    """A single media file in the library, optionally filed in one folder."""

    __tablename__ = "media_items"

    id = Column(Integer, primary_key=True, index=True)
    folder_id = Column(Integer, ForeignKey("folders.id", ondelete="SET NULL"), nullable=True, index=True)
    source_path = Column(String(1000), nullable=False)  # Absolute path of the bytes
    display_name = Column(String(255))
    public_url = Column(String(1000))
    mime_type = Column(String(100))
    alt_text = Column(Text)
    caption = Column(Text)
    description = Column(Text)
    size_bytes = Column(BigInteger)
    width = Column(Integer)
    height = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    folder = relationship("Folder", back_populates="items")

    def __repr__(self):
        return f"<MediaItem {self.id} {self.source_path}>"

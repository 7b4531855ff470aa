from datetime import datetime

from sqlalchemy import Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from vidtube.core.database import Base, utcnow


class WatchHistoryEntry(Base):
    __tablename__ = "watch_history"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    video_id: Mapped[str] = mapped_column(ForeignKey("videos.id", ondelete="CASCADE"), index=True)
    # set in Python so entries written within the same second still order correctly
    watched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_watch_user_video"),
    )

    user = relationship("User", back_populates="watch_history")
    video = relationship("Video", back_populates="watch_entries")

# app/models/module.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from app.core.database import Base


class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, index=True)

    # Course relationship
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Basic Info
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    # Position in course curriculum, 1-based
    order = Column("order", Integer, nullable=False)

    # Content references
    pdf_content = Column(Text, nullable=True)
    video_content = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return (
            f"<Module(id={self.id}, course_id={self.course_id}, order={self.order})>"
        )

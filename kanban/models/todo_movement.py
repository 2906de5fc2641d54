"""Card movement history model"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from kanban.database import Base


class TodoMovement(Base):
    __tablename__ = "todo_movements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    todo_id = Column(Integer, ForeignKey("todos.id", ondelete="CASCADE"), nullable=False, index=True)
    moved_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    from_column_id = Column(Integer, ForeignKey("project_columns.id", ondelete="SET NULL"), nullable=True)
    to_column_id = Column(Integer, ForeignKey("project_columns.id", ondelete="SET NULL"), nullable=True)
    moved_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    todo = relationship("Todo", back_populates="movements")
    moved_by = relationship("User")
    from_column = relationship("ProjectColumn", foreign_keys=[from_column_id])
    to_column = relationship("ProjectColumn", foreign_keys=[to_column_id])

"""
Todo (card) Model
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kanban.database import Base


class Todo(Base):
    __tablename__ = "todos"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    # project_id is denormalized from the column and must follow it on every move
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    column_id = Column(Integer, ForeignKey("project_columns.id", ondelete="SET NULL"), nullable=True, index=True)
    order = Column(Integer, default=0, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    assigned_to_ids = Column(JSON, default=list, nullable=False)
    tag_ids = Column(JSON, default=list, nullable=False)
    labels = Column(JSON, default=list, nullable=False)
    linked_card_ids = Column(JSON, default=list, nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=True)
    reference_document = Column(String(500), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    parent_id = Column(Integer, ForeignKey("todos.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    project = relationship("Project", back_populates="todos")
    column = relationship("ProjectColumn", back_populates="todos")
    owner = relationship("User", back_populates="owned_todos", foreign_keys=[owner_id])
    parent = relationship("Todo", remote_side=[id], back_populates="children")
    children = relationship("Todo", back_populates="parent")
    movements = relationship(
        "TodoMovement",
        back_populates="todo",
        cascade="all, delete-orphan",
        order_by="TodoMovement.moved_at",
    )
    comments = relationship("Comment", back_populates="todo", cascade="all, delete-orphan", order_by="Comment.created_at")

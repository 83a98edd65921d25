from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Date, Text, ForeignKey, JSON, Boolean, DateTime, func
import uuid
from db import Base
import datetime

def new_id() -> str:
    return str(uuid.uuid4())

class Collection(Base):
    __tablename__ = "collections"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    owner_id: Mapped[str] = mapped_column(String(128), index=True)
    is_shared: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    labels: Mapped[list["Label"]] = relationship(back_populates="collection")

class Label(Base):
    __tablename__ = "labels"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    collection_id: Mapped[str] = mapped_column(ForeignKey("collections.id", ondelete="cascade"), index=True)
    name: Mapped[str] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(32))
    icon: Mapped[str] = mapped_column(String(64))
    description: Mapped[str | None] = mapped_column(Text)
    assign_permissions: Mapped[dict] = mapped_column(JSON, default=dict)  # {type, allowed_ids?}
    owner_id: Mapped[str] = mapped_column(String(128))

    collection: Mapped["Collection"] = relationship(back_populates="labels")

class Project(Base):
    __tablename__ = "projects"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    owner_id: Mapped[str] = mapped_column(String(128), index=True)
    is_shared: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    phases: Mapped[list["Phase"]] = relationship(back_populates="project")
    events: Mapped[list["Event"]] = relationship(back_populates="project")

class Phase(Base):
    __tablename__ = "phases"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="cascade"), index=True)
    name: Mapped[str] = mapped_column(Text)
    start_date: Mapped[datetime.date] = mapped_column(Date)
    end_date: Mapped[datetime.date] = mapped_column(Date)
    owner_id: Mapped[str] = mapped_column(String(128))

    project: Mapped["Project"] = relationship(back_populates="phases")

class Event(Base):
    __tablename__ = "events"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="cascade"), index=True)
    name: Mapped[str] = mapped_column(Text)
    start_date: Mapped[datetime.date] = mapped_column(Date)
    end_date: Mapped[datetime.date] = mapped_column(Date)
    location: Mapped[str | None] = mapped_column(Text)
    guest_emails: Mapped[list] = mapped_column(JSON, default=list)
    owner_id: Mapped[str] = mapped_column(String(128))
    is_shared: Mapped[bool] = mapped_column(Boolean, default=False)

    project: Mapped["Project"] = relationship(back_populates="events")

class Link(Base):
    __tablename__ = "links"
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    entity_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    type: Mapped[str] = mapped_column(String(20), index=True)  # collection|project|task
    linked_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

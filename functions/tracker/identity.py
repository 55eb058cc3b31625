"""
Relational identity store: users and user/project links.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Protocol

from sqlalchemy import Column, Integer, String, create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from tracker.errors import UpstreamStoreError


class IdentityStore(Protocol):
    """Interface for the Users / Users_Projects tables."""

    def list_project_ids(self, user_id: int) -> list[str]:
        ...

    def link_user(self, user_id: int, project_id: str) -> None:
        ...

    def unlink_user(self, user_id: int, project_id: str) -> None:
        ...

    def list_team_members(self, project_id: str) -> list["TeamMember"]:
        ...

    def get_user_name(self, user_id: int) -> Optional[tuple[str, str]]:
        ...


@dataclass
class TeamMember:
    user_id: int
    username: Optional[str]
    lastname: Optional[str]
    email: Optional[str]
    role: Optional[str]

    def as_dict(self) -> dict:
        return {
            "UserID": self.user_id,
            "username": self.username,
            "lastname": self.lastname,
            "email": self.email,
            "role": self.role,
        }


class InMemoryIdentityStore:
    """Simple in-memory identity store for development and tests."""

    def __init__(self):
        self.users: Dict[int, dict] = {}
        self.links: List[tuple[int, str]] = []

    def add_user(
        self,
        user_id: int,
        username: str,
        lastname: str = "",
        email: str = "",
        role: str = "",
    ) -> None:
        self.users[user_id] = {
            "username": username,
            "lastname": lastname,
            "email": email,
            "role": role,
        }

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.users.clear()
        self.links.clear()

    def list_project_ids(self, user_id: int) -> list[str]:
        return [project_id for uid, project_id in self.links if uid == user_id]

    def link_user(self, user_id: int, project_id: str) -> None:
        self.links.append((user_id, project_id))

    def unlink_user(self, user_id: int, project_id: str) -> None:
        self.links = [link for link in self.links if link != (user_id, project_id)]

    def list_team_members(self, project_id: str) -> list[TeamMember]:
        members: list[TeamMember] = []
        for user_id, linked_project in self.links:
            user = self.users.get(user_id)
            if linked_project != project_id or user is None:
                continue
            members.append(
                TeamMember(
                    user_id=user_id,
                    username=user["username"],
                    lastname=user["lastname"],
                    email=user["email"],
                    role=user["role"],
                )
            )
        return members

    def get_user_name(self, user_id: int) -> Optional[tuple[str, str]]:
        user = self.users.get(user_id)
        if not user:
            return None
        return user["username"] or "", user["lastname"] or ""


class SqlIdentityStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., SQL
    Server or Postgres in production, SQLite for tests).
    """

    def __init__(self, database_url: str, *, create_tables: bool = True):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlIdentityStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        if create_tables:
            Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise UpstreamStoreError(f"Identity store error: {exc}") from exc

    def add_user(
        self,
        user_id: int,
        username: str,
        lastname: str = "",
        email: str = "",
        role: str = "",
    ) -> None:
        with self._session() as session:
            session.add(
                UserRow(
                    user_id=user_id,
                    username=username,
                    lastname=lastname,
                    email=email,
                    role=role,
                )
            )
            session.commit()

    def list_project_ids(self, user_id: int) -> list[str]:
        with self._session() as session:
            stmt = (
                select(UserProjectRow.project_id)
                .where(UserProjectRow.user_id == user_id)
                .order_by(UserProjectRow.id.asc())
            )
            return list(session.execute(stmt).scalars())

    def link_user(self, user_id: int, project_id: str) -> None:
        with self._session() as session:
            session.add(UserProjectRow(user_id=user_id, project_id=project_id))
            session.commit()

    def unlink_user(self, user_id: int, project_id: str) -> None:
        with self._session() as session:
            session.execute(
                delete(UserProjectRow).where(
                    UserProjectRow.user_id == user_id,
                    UserProjectRow.project_id == project_id,
                )
            )
            session.commit()

    def list_team_members(self, project_id: str) -> list[TeamMember]:
        with self._session() as session:
            stmt = (
                select(UserRow)
                .join(UserProjectRow, UserProjectRow.user_id == UserRow.user_id)
                .where(UserProjectRow.project_id == project_id)
                .order_by(UserProjectRow.id.asc())
            )
            return [
                TeamMember(
                    user_id=row.user_id,
                    username=row.username,
                    lastname=row.lastname,
                    email=row.email,
                    role=row.role,
                )
                for row in session.execute(stmt).scalars()
            ]

    def get_user_name(self, user_id: int) -> Optional[tuple[str, str]]:
        with self._session() as session:
            row = session.get(UserRow, user_id)
            if not row:
                return None
            return row.username or "", row.lastname or ""


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "Users"

    user_id = Column("UserID", Integer, primary_key=True, autoincrement=False)
    username = Column(String(100), nullable=True)
    lastname = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    role = Column(String(50), nullable=True)


class UserProjectRow(Base):
    # No unique constraint on (UserID, ProjectID): relinking adds a row.
    __tablename__ = "Users_Projects"

    id = Column("LinkID", Integer, primary_key=True, autoincrement=True)
    user_id = Column("UserID", Integer, nullable=False, index=True)
    project_id = Column("ProjectID", String(64), nullable=False, index=True)

# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "inkwell-test-secret-key-not-for-production")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

from inkwell.api.v1.dependencies import get_notifier
from inkwell.core.security import create_access_token, hash_password
from inkwell.db.session import Base, enable_sqlite_foreign_keys
from inkwell.db.session import get_db as app_get_session
from inkwell.db.session import get_session_factory
from inkwell.main import app as fastapi_app
from inkwell.models import Comment, CommentStatus, Post, User, UserRole

TEST_DB_URL = "sqlite://"
DEFAULT_PASSWORD = "Password123"

_USER_COUNTER = count(1)
_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


class RecordingNotifier:
    """Stands in for the realtime notifier and keeps every broadcast."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    async def broadcast(self, event: str, payload: Any) -> None:
        self.events.append((event, payload))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def last(self, event: str) -> Any:
        for name, payload in reversed(self.events):
            if name == event:
                return payload
        raise AssertionError(f"No {event!r} broadcast recorded")


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    notifier: RecordingNotifier,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    @contextmanager
    def _session_scope() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_factory] = lambda: _session_scope
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_session_factory, None)
        app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make_user(
        *,
        role: UserRole = UserRole.USER,
        username: str | None = None,
        is_active: bool = True,
    ) -> User:
        n = next(_USER_COUNTER)
        name = username or f"{role.value}{n}"
        user = User(
            username=name,
            email=f"{name}@example.com",
            password_hash=_PASSWORD_HASH,
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def author(make_user: Callable[..., User]) -> User:
    """Writes the posts used across tests."""
    return make_user(username="alice")


@pytest.fixture()
def commenter(make_user: Callable[..., User]) -> User:
    return make_user(username="bob")


@pytest.fixture()
def bystander(make_user: Callable[..., User]) -> User:
    return make_user(username="dave")


@pytest.fixture()
def moderator(make_user: Callable[..., User]) -> User:
    return make_user(role=UserRole.MODERATOR, username="mod")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user(role=UserRole.ADMIN, username="root")


def bearer(user: User) -> dict[str, str]:
    token = create_access_token(
        user.id,
        email=user.email,
        username=user.username,
        role=user.role.value,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    return bearer


@pytest.fixture()
def published_post(db_session: Session, author: User) -> Post:
    post = Post(
        title="Hello, Inkwell",
        content="First post body",
        tags=["intro", "python"],
        author_id=author.id,
        is_published=True,
    )
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    return post


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    def _make_comment(
        post: Post,
        user: User,
        *,
        content: str = "Nice read",
        status: CommentStatus = CommentStatus.PENDING,
        parent: Comment | None = None,
    ) -> Comment:
        comment = Comment(
            content=content,
            post_id=post.id,
            author_id=user.id,
            parent_id=parent.id if parent else None,
            status=status,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make_comment


@pytest.fixture()
def pending_comment(
    make_comment: Callable[..., Comment],
    published_post: Post,
    commenter: User,
) -> Comment:
    return make_comment(published_post, commenter)

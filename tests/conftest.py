"""
Shared pytest fixtures for the task-manager test suite.

Provides the Flask application, test client, a clean database per test,
user and task factories, bearer headers for two independent users and a
mocked email provider.

Key SDET Concepts Demonstrated:
- Session-scoped vs function-scoped fixtures for performance and isolation
- Factory pattern (user_factory, task_factory) for flexible test data
- Mocking the outbound email API so no test touches the network
"""

from __future__ import annotations

import os
from collections.abc import Callable
from unittest.mock import MagicMock, patch

import pytest
from faker import Faker

# Set testing environment before importing app
os.environ["FLASK_ENV"] = "testing"
os.environ["TEST_JWT_SECRET_KEY"] = "test-jwt-secret-key-for-local-tests-123456"

from tests.helpers import DEFAULT_PASSWORD, auth_headers
from todo_app import create_app, db
from todo_app.credentials import CredentialStore
from todo_app.models import Task, User

fake = Faker()


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def app():
    """
    Provide the Flask application instance for the entire test session.

    Creates the app once using the 'testing' configuration and shares it
    across all tests so the application factory is not invoked repeatedly.
    """
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """Provide a Flask test client scoped to a single test function."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database for each test function.

    Creates all tables before the test, yields the db instance, then rolls
    back uncommitted changes and drops all tables.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


@pytest.fixture(autouse=True)
def mail_api():
    """
    Replace the email provider's HTTP endpoint with a mock.

    Every test gets a successful (202) response by default; tests that
    exercise delivery failures override ``return_value`` or
    ``side_effect``.
    """
    with patch("todo_app.notifications.requests.post") as mock_post:
        mock_post.return_value = MagicMock(status_code=202)
        yield mock_post


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def auth_service(app):
    return app.extensions["auth"]


@pytest.fixture
def user_factory(db_session) -> Callable[..., User]:
    """
    Factory fixture that creates and persists users via the credential store.

    Defaults come from Faker; the password is always ``DEFAULT_PASSWORD``
    unless overridden.
    """

    def _create_user(
        name: str | None = None,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        age: int = 0,
    ) -> User:
        return CredentialStore().create(
            {
                "name": name or fake.name(),
                "email": email or fake.unique.email(),
                "password": password,
                "age": age,
            }
        )

    return _create_user


@pytest.fixture
def task_factory(db_session) -> Callable[..., Task]:
    """Factory fixture that inserts Task rows directly."""

    def _create_task(
        owner: User,
        description: str | None = None,
        completed: bool = False,
    ) -> Task:
        task = Task(
            owner=owner.id,
            description=description or fake.sentence(nb_words=4),
            completed=completed,
        )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def user_one(user_factory) -> User:
    return user_factory(name="Mike", email="mike@example.com")


@pytest.fixture
def user_two(user_factory) -> User:
    return user_factory(name="Jess", email="jess@example.com")


@pytest.fixture
def user_one_token(auth_service, user_one) -> str:
    return auth_service.issue_token(user_one)


@pytest.fixture
def user_two_token(auth_service, user_two) -> str:
    return auth_service.issue_token(user_two)


@pytest.fixture
def api_headers(user_one_token) -> dict[str, str]:
    """Authorization + JSON headers for ``user_one``."""
    return auth_headers(user_one_token)


@pytest.fixture
def second_user_headers(user_two_token) -> dict[str, str]:
    """Authorization + JSON headers for ``user_two``."""
    return auth_headers(user_two_token)


@pytest.fixture
def user_one_tasks(task_factory, user_one) -> list[Task]:
    """Two tasks for ``user_one``: one open, one completed."""
    return [
        task_factory(user_one, description="First task", completed=False),
        task_factory(user_one, description="Second task", completed=True),
    ]


@pytest.fixture
def user_two_task(task_factory, user_two) -> Task:
    return task_factory(user_two, description="Third task", completed=True)

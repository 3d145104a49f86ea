import os
from datetime import date

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from config import Config  # noqa: E402
from esg_platform import create_app, db  # noqa: E402
from esg_platform.models import (  # noqa: E402
    User, Employee, TrainingProgram, EmployeeTraining,
)


@pytest.fixture()
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        SQLALCHEMY_ENGINE_OPTIONS = {}
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        ANTHROPIC_API_KEY = ""
        TRAINING_STATUS_SOURCE = "live"
        ADMIN_USERNAME = "admin"
        ADMIN_PASSWORD = "admin123"

    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client, username, password):
    res = client.post("/auth/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.get_json()
    return res


@pytest.fixture()
def login_as(client):
    def _as(username="admin", password="admin123"):
        return _login(client, username, password)
    return _as


@pytest.fixture()
def admin_client(client):
    _login(client, "admin", "admin123")
    return client


@pytest.fixture()
def make_user(app):
    def _make(username="viewer1", role="viewer", password="Passw0rd1"):
        user = User(username=username, email=f"{username}@example.com", full_name=username.title(), role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture()
def make_employee(app):
    def _make(full_name="Maria Silva", **kwargs):
        kwargs.setdefault("status", "Ativo")
        employee = Employee(full_name=full_name, **kwargs)
        db.session.add(employee)
        db.session.commit()
        return employee
    return _make


@pytest.fixture()
def make_program(app):
    def _make(name="NR-35 Trabalho em Altura", start_date=date(2024, 3, 1), end_date=date(2024, 3, 5), **kwargs):
        kwargs.setdefault("duration_hours", 8)
        program = TrainingProgram(name=name, start_date=start_date, end_date=end_date, **kwargs)
        db.session.add(program)
        db.session.commit()
        return program
    return _make


@pytest.fixture()
def make_training(app):
    def _make(employee, program, **kwargs):
        training = EmployeeTraining(employee=employee, program=program, **kwargs)
        db.session.add(training)
        db.session.commit()
        return training
    return _make

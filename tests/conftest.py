import os

os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['ENABLE_TEMPLATE_JOBS'] = '0'

import pytest

from app import app as flask_app
from models import db


@pytest.fixture
def app():
    flask_app.config['TESTING'] = True
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    from row_store import RowStore
    return RowStore()

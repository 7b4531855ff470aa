import os
import tempfile
from pathlib import Path

os.environ.setdefault('DATABASE_URL', 'sqlite+pysqlite:///:memory:')
os.environ.setdefault('TEMP_DIR', tempfile.mkdtemp(prefix='vidtube-temp-'))
os.environ.setdefault('MEDIA_DIR', tempfile.mkdtemp(prefix='vidtube-media-'))
os.environ.setdefault('BCRYPT_ROUNDS', '4')

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vidtube import models  # noqa: F401 ensure models imported
from vidtube.api.deps import get_media_storage
from vidtube.core.database import Base, get_db
from vidtube.main import app
from vidtube.services.media import MediaStorage, MediaStorageError, UploadedAsset

TEST_DB_URL = 'sqlite+pysqlite:///:memory:'


class FakeMediaStorage(MediaStorage):
    """Records uploads in memory; set ``fail_on`` to make uploads fail and
    ``before_upload`` to run a callback while an upload is in flight."""

    def __init__(self):
        self.uploads: list[dict] = []
        self.destroyed: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()
        self.before_upload = None
        self._counter = 0

    def upload(self, local_path, resource_type='auto'):
        path = Path(local_path)
        record = {
            'path': path,
            'existed': path.exists(),
            'content': path.read_bytes() if path.exists() else None,
            'resource_type': resource_type,
        }
        self.uploads.append(record)
        if self.before_upload is not None:
            self.before_upload()
        if resource_type in self.fail_on or 'all' in self.fail_on:
            raise MediaStorageError('simulated failure')
        self._counter += 1
        public_id = f'{resource_type}-{self._counter}'
        record['public_id'] = public_id
        return UploadedAsset(
            url=f'https://media.test/{public_id}',
            public_id=public_id,
            resource_type=resource_type,
            duration=12.5 if resource_type == 'video' else None,
        )

    def destroy(self, public_id, resource_type='image'):
        self.destroyed.append((public_id, resource_type))


@pytest.fixture()
def db_session():
    engine = create_engine(
        TEST_DB_URL,
        future=True,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session_maker = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, future=True
    )
    session = session_maker()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def media():
    return FakeMediaStorage()


@pytest.fixture()
def client(db_session, media):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_storage] = lambda: media
    # secure cookies are only sent back over https
    yield TestClient(app, base_url='https://testserver')
    app.dependency_overrides.clear()


def image(name='avatar.png'):
    return (name, b'\x89PNG fake image bytes', 'image/png')


@pytest.fixture()
def register(client):
    def _register(username='alice', email=None, password='pass123', full_name='Alice Doe',
                  cover=False):
        files = {'avatar': image()}
        if cover:
            files['coverImage'] = image('cover.png')
        return client.post(
            '/api/v1/users/register',
            data={
                'fullName': full_name,
                'email': email or f'{username}@example.com',
                'username': username,
                'password': password,
            },
            files=files,
        )
    return _register


@pytest.fixture()
def login(client):
    """Log in and return the token pair; cookies are dropped so each test
    chooses how to authenticate."""
    def _login(username='alice', password='pass123'):
        r = client.post('/api/v1/users/login', json={'username': username, 'password': password})
        assert r.status_code == 200, r.text
        client.cookies.clear()
        return r.json()['data']
    return _login


@pytest.fixture()
def auth(register, login):
    def _auth(username='alice'):
        r = register(username=username)
        assert r.status_code == 201, r.text
        data = login(username=username)
        return {
            'id': data['user']['id'],
            'headers': {'Authorization': f"Bearer {data['accessToken']}"},
            'refresh_token': data['refreshToken'],
        }
    return _auth


@pytest.fixture()
def publish(client):
    def _publish(headers, title='My video', description='About my video'):
        r = client.post(
            '/api/v1/videos',
            data={'title': title, 'description': description},
            files={
                'videoFile': ('clip.mp4', b'0' * 1024, 'video/mp4'),
                'thumbnail': image('thumb.png'),
            },
            headers=headers,
        )
        assert r.status_code == 201, r.text
        return r.json()['data']
    return _publish

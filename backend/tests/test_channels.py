import uuid
from datetime import timedelta

from sqlalchemy import update

from vidtube.core.database import utcnow
from vidtube.models.watch_history import WatchHistoryEntry


def subscribe(client, headers, channel_id):
    r = client.post(f'/api/v1/subscriptions/c/{channel_id}', headers=headers)
    assert r.status_code == 200, r.text
    return r.json()['data']['subscribed']


def test_channel_profile_counts(client, auth):
    a = auth('alice')
    b = auth('bob')
    c = auth('carol')
    assert subscribe(client, b['headers'], a['id']) is True
    assert subscribe(client, c['headers'], a['id']) is True
    assert subscribe(client, a['headers'], c['id']) is True

    r = client.get('/api/v1/users/channel/alice', headers=b['headers'])
    assert r.status_code == 200, r.text
    profile = r.json()['data']
    assert profile['username'] == 'alice'
    assert profile['subscribersCount'] == 2
    assert profile['channelsSubscribedToCount'] == 1
    assert profile['isSubscribed'] is True

    other = client.get('/api/v1/users/channel/alice', headers=a['headers']).json()['data']
    assert other['isSubscribed'] is False


def test_channel_profile_anonymous_viewer(client, auth):
    auth('alice')
    r = client.get('/api/v1/users/channel/ALICE')
    assert r.status_code == 200
    profile = r.json()['data']
    assert profile['subscribersCount'] == 0
    assert profile['isSubscribed'] is False
    assert 'email' not in profile
    assert 'password' not in profile


def test_channel_profile_not_found(client):
    r = client.get('/api/v1/users/channel/ghost')
    assert r.status_code == 404
    assert r.json()['message'] == 'Channel does not exist'


def test_toggle_subscription_twice_unsubscribes(client, auth):
    a = auth('alice')
    b = auth('bob')
    assert subscribe(client, b['headers'], a['id']) is True
    r = client.post(f"/api/v1/subscriptions/c/{a['id']}", headers=b['headers'])
    assert r.json()['data']['subscribed'] is False
    assert r.json()['message'] == 'Unsubscribed successfully'
    profile = client.get('/api/v1/users/channel/alice').json()['data']
    assert profile['subscribersCount'] == 0


def test_cannot_subscribe_to_self(client, auth):
    a = auth()
    r = client.post(f"/api/v1/subscriptions/c/{a['id']}", headers=a['headers'])
    assert r.status_code == 400
    r = client.post(f"/api/v1/subscriptions/c/{a['id'].upper()}", headers=a['headers'])
    assert r.status_code == 400
    assert r.json()['message'] == 'You cannot subscribe to your own channel'


def test_subscription_routes_accept_any_uuid_spelling(client, auth):
    a = auth('alice')
    b = auth('bob')
    assert subscribe(client, b['headers'], a['id'].upper()) is True
    subscribers = client.get(f"/api/v1/subscriptions/c/{a['id'].replace('-', '')}").json()['data']
    assert [u['id'] for u in subscribers] == [b['id']]
    channels = client.get(f"/api/v1/subscriptions/u/{b['id'].upper()}").json()['data']
    assert [u['id'] for u in channels] == [a['id']]


def test_channel_profile_ignores_unusable_token(client, auth):
    auth('alice')
    r = client.get('/api/v1/users/channel/alice', headers={'Authorization': 'Bearer garbage'})
    assert r.status_code == 200
    assert r.json()['data']['isSubscribed'] is False


def test_subscribe_rejects_bad_or_unknown_channel(client, auth):
    a = auth()
    assert client.post('/api/v1/subscriptions/c/xyz', headers=a['headers']).status_code == 400
    r = client.post(f'/api/v1/subscriptions/c/{uuid.uuid4()}', headers=a['headers'])
    assert r.status_code == 404


def test_subscription_lists(client, auth):
    a = auth('alice')
    b = auth('bob')
    c = auth('carol')
    subscribe(client, b['headers'], a['id'])
    subscribe(client, c['headers'], a['id'])
    subscribe(client, b['headers'], c['id'])

    subscribers = client.get(f"/api/v1/subscriptions/c/{a['id']}").json()['data']
    assert {u['username'] for u in subscribers} == {'bob', 'carol'}
    assert all(set(u) == {'id', 'username', 'fullName', 'avatar'} for u in subscribers)

    channels = client.get(f"/api/v1/subscriptions/u/{b['id']}").json()['data']
    assert {u['id'] for u in channels} == {a['id'], c['id']}

    assert client.get('/api/v1/subscriptions/u/bad-id').status_code == 400


def test_watch_history_most_recent_first(client, auth, publish, db_session):
    a = auth('alice')
    b = auth('bob')
    first = publish(a['headers'], title='First')
    second = publish(a['headers'], title='Second')
    for video in (first, second):
        client.patch(f"/api/v1/videos/toggle/publish/{video['id']}", headers=a['headers'])

    client.get(f"/api/v1/videos/{first['id']}", headers=b['headers'])
    client.get(f"/api/v1/videos/{second['id']}", headers=b['headers'])
    # pin timestamps so ordering does not hinge on clock resolution
    now = utcnow()
    for video, age in ((first, 2), (second, 1)):
        db_session.execute(
            update(WatchHistoryEntry)
            .where(WatchHistoryEntry.video_id == video['id'])
            .values(watched_at=now - timedelta(minutes=age))
        )
    db_session.commit()

    r = client.get('/api/v1/users/watch-history', headers=b['headers'])
    assert r.status_code == 200
    history = r.json()['data']
    assert [v['id'] for v in history] == [second['id'], first['id']]
    assert history[0]['owner']['username'] == 'alice'
    assert 'id' not in history[0]['owner']

    # watching again moves the video to the front
    client.get(f"/api/v1/videos/{first['id']}", headers=b['headers'])
    history = client.get('/api/v1/users/watch-history', headers=b['headers']).json()['data']
    assert [v['id'] for v in history] == [first['id'], second['id']]


def test_watch_history_requires_auth(client):
    assert client.get('/api/v1/users/watch-history').status_code == 401

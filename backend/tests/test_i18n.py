from vidtube.i18n import Translator, translator


def test_error_message_follows_locale_header(client):
    r = client.get('/api/v1/users/current-user', headers={'X-Locale': 'ru'})
    assert r.status_code == 401
    assert r.headers['Content-Language'] == 'ru'
    assert r.json()['message'] == translator.t('errors.auth', locale='ru')
    assert r.json()['message'] != translator.t('errors.auth', locale='en')


def test_default_locale_is_english(client):
    r = client.get('/api/v1/users/current-user')
    assert r.headers['Content-Language'] == 'en'
    assert r.json()['message'] == 'Unauthorized request'


def test_unknown_locale_falls_back_to_english():
    assert translator.t('users.not_found', locale='xx') == 'User does not exist'


def test_missing_key_renders_key():
    assert translator.t('nope.missing') == 'nope.missing'


def test_parameters_are_interpolated():
    assert translator.t('errors.file_too_large', limit=5) == 'File is larger than 5 MB'
    # missing parameters leave the template untouched
    assert translator.t('errors.file_too_large') == 'File is larger than {limit} MB'


def test_translator_loads_every_locale_directory():
    t = Translator()
    t.load()
    assert {'en', 'ru'} <= set(t.locales)


def test_validation_errors_use_envelope(client, auth):
    a = auth()
    r = client.post('/api/v1/users/change-password', content=b'not json',
                    headers={**a['headers'], 'Content-Type': 'application/json'})
    assert r.status_code == 400
    body = r.json()
    assert body['success'] is False
    assert body['message'] == 'Invalid request data'
    assert body['errors']

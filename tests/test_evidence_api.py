from support import PDF_BYTES, PNG_BYTES, SUPABASE_URL


def test_raw_upload_returns_generated_key(client, storage):
    response = client.post('/api/upload', content=PNG_BYTES, headers={'content-type': 'image/png'})
    assert response.status_code == 200
    body = response.json()
    assert body['ok'] is True
    assert body['key'].endswith('.png')
    (upload,) = storage.calls('upload')
    assert upload.headers['x-upsert'] == 'true'
    assert upload.content == PNG_BYTES


def test_raw_upload_sniffs_undeclared_content(client):
    response = client.post('/api/upload', content=PDF_BYTES, headers={'content-type': ''})
    assert response.status_code == 200
    assert response.json()['key'].endswith('.pdf')


def test_empty_upload_is_rejected(client, storage):
    response = client.post('/api/upload', content=b'')
    assert response.status_code == 400
    assert response.json() == {'error': 'No file uploaded'}
    assert storage.requests == []


def test_unknown_content_rejected_when_bin_disabled(client, make_container, use_container):
    use_container(make_container(allow_bin_evidence=False))
    response = client.post('/api/upload', content=b'hello', headers={'content-type': 'text/plain'})
    assert response.status_code == 400
    assert response.json()['error'] == 'Unsupported file type: bin'


def test_upload_storage_failure_is_bad_gateway(client, storage):
    storage.fail('upload', 403, 'bucket missing')
    response = client.post('/api/upload', content=PNG_BYTES, headers={'content-type': 'image/png'})
    assert response.status_code == 502
    assert response.json() == {'error': 'Upload failed', 'detail': 'bucket missing'}


def test_sign_upload_returns_absolute_url_and_token(client, storage):
    response = client.post('/api/sign-upload', json={'ext': '.JPEG'})
    assert response.status_code == 200
    body = response.json()
    assert body['ok'] is True
    assert body['key'].endswith('.jpg')
    assert body['signedUploadUrl'].startswith(f'{SUPABASE_URL}/storage/v1/object/upload/sign/evidence/')
    assert body['token'] == 'upload-token'
    (request,) = storage.calls('upload_sign')
    assert request.url.path.endswith(body['key'])


def test_sign_upload_without_body_defaults_to_bin(client):
    response = client.post('/api/sign-upload')
    assert response.status_code == 200
    assert response.json()['key'].endswith('.bin')


def test_sign_upload_rejects_unknown_extension(client, storage):
    response = client.post('/api/sign-upload', json={'ext': 'exe'})
    assert response.status_code == 400
    assert response.json()['error'] == 'Unsupported file type: exe'
    assert storage.requests == []


def test_sign_upload_failure(client, storage):
    storage.fail('upload_sign', 400, 'nope')
    response = client.post('/api/sign-upload', json={'ext': 'pdf'})
    assert response.status_code == 502
    assert response.json() == {'error': 'Sign failed', 'detail': 'nope'}


def test_evidence_redirects_to_signed_read_url(client, storage):
    response = client.get('/api/evidence', params={'key': 'evidence/1-a.png'}, follow_redirects=False)
    assert response.status_code == 302
    assert response.headers['location'] == (
        f'{SUPABASE_URL}/storage/v1/object/sign/evidence/1-a.png?token=read-token'
    )
    (request,) = storage.calls('sign')
    assert request.url.path == '/storage/v1/object/sign/evidence/1-a.png'


def test_evidence_keeps_prefixed_signed_path(client, storage):
    storage.sign_payload = {'signedURL': '/storage/v1/object/sign/evidence/1-a.png?token=t'}
    response = client.get('/api/evidence', params={'key': '1-a.png'}, follow_redirects=False)
    assert response.headers['location'] == f'{SUPABASE_URL}/storage/v1/object/sign/evidence/1-a.png?token=t'


def test_evidence_requires_key(client, storage):
    assert client.get('/api/evidence').status_code == 400
    response = client.get('/api/evidence', params={'key': '  '})
    assert response.json() == {'error': 'Missing key'}
    assert storage.requests == []


def test_evidence_sign_failure(client, storage):
    storage.fail('sign', 404, 'Object not found')
    response = client.get('/api/evidence', params={'key': '1-a.png'}, follow_redirects=False)
    assert response.status_code == 502
    assert response.json()['detail'] == 'Object not found'

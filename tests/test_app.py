import base64

import pytest
from fastapi.testclient import TestClient

from helpers import FakeResponse, FakeSession, hqdefault, maxres, page, png_response, watch
from posterlink import app as app_module
from posterlink.models import User
from posterlink.services.auth import AuthService
from posterlink.services.imgbb import ImgbbService
from posterlink.services.palette import PaletteExtractor
from posterlink.services.video_info import VideoInfoService
from posterlink.services.youtube import YouTubeService

SECRET = "posterlink-test-secret-0123456789abcdef"
HOSTED_URL = "https://i.ibb.co/abc/poster.png"
IMGBB_URL = "https://imgbb.test/1/upload"
DATA_URL = "data:image/png;base64," + base64.b64encode(b"\x89PNG fake").decode("ascii")


@pytest.fixture
def youtube_routes():
    return {
        maxres("abc123"): FakeResponse(404),
        hqdefault("abc123"): png_response(),
        watch("abc123"): page("Foo &amp; Bar - YouTube"),
    }


@pytest.fixture
def imgbb_session():
    return FakeSession({IMGBB_URL: FakeResponse(200, json_data={"success": True, "data": {"url": HOSTED_URL}})})


@pytest.fixture
def client(users_db, monkeypatch, youtube_routes, imgbb_session):
    youtube = YouTubeService(session=FakeSession(youtube_routes), title_fallback="Title unavailable")
    monkeypatch.setattr(app_module, "auth_service", AuthService(secret=SECRET, rounds=4))
    monkeypatch.setattr(app_module, "video_info_service", VideoInfoService(youtube, PaletteExtractor()))
    monkeypatch.setattr(app_module, "imgbb_service",
                        ImgbbService(api_key="key", upload_url=IMGBB_URL, session=imgbb_session))
    return TestClient(app_module.app)


def make_user(users_db, premium=False) -> User:
    user = users_db.create_user("Ana", "ana@example.com", "not-a-real-hash")
    if premium:
        user = users_db.set_premium(user.user_id)
    return user


def auth(user: User, **kwargs) -> dict:
    token = AuthService(secret=SECRET, **kwargs).create_token(user)
    return {"Authorization": f"Bearer {token}"}


# /get-video-info

def test_get_video_info_end_to_end(client, users_db):
    headers = auth(make_user(users_db))
    response = client.post("/get-video-info", json={"youtubeUrl": "https://youtu.be/abc123"}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["thumbnailAttempts"][0].endswith("/abc123/maxresdefault.jpg")
    assert body["thumbnailUrl"].endswith("/abc123/hqdefault.jpg")
    assert body["title"] == "Foo &amp; Bar"
    assert len(body["colors"]) >= 3
    assert body["sourceUrl"] == "https://youtu.be/abc123"


def test_get_video_info_with_unreachable_watch_page(client, users_db, youtube_routes):
    del youtube_routes[watch("abc123")]
    headers = auth(make_user(users_db))
    body = client.post("/get-video-info", json={"youtubeUrl": "https://youtu.be/abc123"}, headers=headers).json()
    assert body["title"] == "Title unavailable"


def test_invalid_url_is_400(client, users_db):
    response = client.post("/get-video-info", json={"youtubeUrl": "hello"}, headers=auth(make_user(users_db)))
    assert response.status_code == 400
    assert "error" in response.json()


def test_missing_thumbnail_returns_error_and_no_video_info(client, users_db, youtube_routes):
    del youtube_routes[hqdefault("abc123")]
    response = client.post("/get-video-info", json={"youtubeUrl": "https://youtu.be/abc123"},
                           headers=auth(make_user(users_db)))
    assert response.status_code == 502
    assert set(response.json()) == {"error"}


def test_missing_body_field_is_400(client, users_db):
    response = client.post("/get-video-info", json={}, headers=auth(make_user(users_db)))
    assert response.status_code == 400
    assert "youtubeUrl" in response.json()["error"]


# Auth

def test_missing_token_is_401(client):
    response = client.post("/get-video-info", json={"youtubeUrl": "https://youtu.be/abc123"})
    assert response.status_code == 401
    assert response.json()["error"] == "Authorization token required."


def test_malformed_header_is_401(client):
    response = client.get("/me", headers={"Authorization": "Token abc"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token format."


def test_bad_token_is_401(client):
    response = client.get("/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401


def test_expired_token_is_401(client, users_db):
    response = client.get("/me", headers=auth(make_user(users_db), expires_seconds=-60))
    assert response.status_code == 401
    assert response.json()["error"] == "Token expired."


def test_unknown_user_is_404(client):
    ghost = User(user_id="deadbeef", name="Ghost", email="ghost@example.com", password_hash="x")
    response = client.get("/me", headers=auth(ghost))
    assert response.status_code == 404


def test_register_and_login(client):
    created = client.post("/register", json={"name": "Ana", "email": " Ana@Example.com ", "password": "s3cret"})
    assert created.status_code == 201

    duplicate = client.post("/register", json={"name": "Ana", "email": "ana@example.com", "password": "x"})
    assert duplicate.status_code == 409

    bad = client.post("/login", json={"email": "ana@example.com", "password": "wrong"})
    assert bad.status_code == 401

    login = client.post("/login", json={"email": "ana@example.com", "password": "s3cret"})
    assert login.status_code == 200
    body = login.json()
    assert body["user"]["isPremium"] is False
    assert "password" not in str(body["user"])

    me = client.get("/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.json()["email"] == "ana@example.com"


def test_register_rejects_password_over_72_bytes(client):
    response = client.post("/register", json={"name": "Ana", "email": "ana@example.com", "password": "x" * 100})

    assert response.status_code == 400
    assert "72 bytes" in response.json()["error"]


def test_register_counts_password_bytes_not_characters(client):
    response = client.post("/register", json={"name": "Ana", "email": "ana@example.com", "password": "\u00e9" * 40})
    assert response.status_code == 400


def test_login_with_overlong_password_is_invalid_credentials(client):
    client.post("/register", json={"name": "Ana", "email": "ana@example.com", "password": "s3cret"})

    response = client.post("/login", json={"email": "ana@example.com", "password": "x" * 100})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials."}


def test_register_requires_all_fields(client):
    response = client.post("/register", json={"email": "a@b.c"})
    assert response.status_code == 400


# Premium

def test_non_premium_cannot_list_posters(client, users_db):
    user = make_user(users_db)
    users_db.append_poster(user.user_id, HOSTED_URL)

    response = client.get("/get-posters", headers=auth(user))

    assert response.status_code == 403
    assert set(response.json()) == {"error"}
    assert HOSTED_URL not in response.text


def test_upgrade_is_one_way_and_once(client, users_db):
    headers = auth(make_user(users_db))

    first = client.post("/update-to-premium", headers=headers)
    assert first.status_code == 200
    assert first.json()["user"]["isPremium"] is True

    second = client.post("/update-to-premium", headers=headers)
    assert second.status_code == 400
    assert client.get("/me", headers=headers).json()["isPremium"] is True


def test_premium_listing_reads_stored_flag(client, users_db):
    user = make_user(users_db)
    headers = auth(user)
    assert client.get("/get-posters", headers=headers).status_code == 403

    users_db.set_premium(user.user_id)
    response = client.get("/get-posters", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"posters": []}


# Upload relay

def test_upload_records_hosted_url(client, users_db, imgbb_session):
    user = make_user(users_db, premium=True)
    headers = auth(user)

    response = client.post("/upload-to-imgbb", json={"imageData": DATA_URL, "filename": "Foo___Bar.png"},
                           headers=headers)

    assert response.status_code == 200
    assert response.json()["url"] == HOSTED_URL
    _method, _url, kwargs = imgbb_session.calls[0]
    assert kwargs["params"] == {"key": "key"}
    assert kwargs["data"]["name"] == "Foo___Bar"
    assert kwargs["data"]["image"] == DATA_URL.split(",", 1)[1]

    client.post("/upload-to-imgbb", json={"imageData": DATA_URL, "filename": "again.png"}, headers=headers)
    assert client.get("/get-posters", headers=headers).json()["posters"] == [HOSTED_URL, HOSTED_URL]


def test_upload_rejected_by_host_records_nothing(client, users_db, imgbb_session):
    imgbb_session.routes[IMGBB_URL] = FakeResponse(
        400, json_data={"success": False, "error": {"message": "Invalid API key"}})
    user = make_user(users_db)

    response = client.post("/upload-to-imgbb", json={"imageData": DATA_URL, "filename": "x.png"},
                           headers=auth(user))

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid API key"
    assert users_db.get_user(user.user_id).posters == []


def test_upload_requires_image_and_filename(client, users_db):
    response = client.post("/upload-to-imgbb", json={"imageData": DATA_URL}, headers=auth(make_user(users_db)))
    assert response.status_code == 400


def test_upload_rejects_non_data_url(client, users_db):
    response = client.post("/upload-to-imgbb", json={"imageData": "aGVsbG8=", "filename": "x.png"},
                           headers=auth(make_user(users_db)))
    assert response.status_code == 400


def test_upload_without_api_key_is_500(client, users_db, monkeypatch):
    monkeypatch.setattr(app_module, "imgbb_service", ImgbbService(api_key="", session=FakeSession()))
    response = client.post("/upload-to-imgbb", json={"imageData": DATA_URL, "filename": "x.png"},
                           headers=auth(make_user(users_db)))
    assert response.status_code == 500


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy", "imgbb_configured": True}

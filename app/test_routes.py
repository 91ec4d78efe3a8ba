# app/test_routes.py
"""
HTTP 계층 테스트: 상태 코드와 {success, message?, data?} 응답 형식을 확인합니다.

사용법: python -m pytest app/test_routes.py -v
"""
import io
import json

from app.models.post import Visibility


def test_signup_login_and_me(client):
    res = client.post('/api/auth/signup', json={
        "username": "alice", "email": "alice@example.com", "password": "secret123", "full_name": "Alice",
    })
    assert res.status_code == 201
    body = res.get_json()
    assert body['success'] is True
    assert body['data']['user']['username'] == "alice"
    assert 'password' not in body['data']['user']

    res = client.post('/api/auth/login', json={"email": "alice@example.com", "password": "secret123"})
    token = res.get_json()['data']['access_token']

    res = client.get('/api/auth/me', headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.get_json()['data']['email'] == "alice@example.com"

def test_signup_validation_error(client):
    res = client.post('/api/auth/signup', json={"username": "a!", "email": "nope"})
    body = res.get_json()
    assert res.status_code == 400
    assert body['success'] is False
    assert body['error_code'] == "VALIDATION_ERROR"
    assert {'username', 'email', 'password', 'full_name'} <= set(body['details'])

def test_wrong_password_is_401(client, make_user):
    make_user("alice")
    res = client.post('/api/auth/login', json={"email": "alice@example.com", "password": "wrong-password"})
    assert res.status_code == 401
    assert res.get_json()['error_code'] == "INVALID_CREDENTIALS"

def test_missing_token_is_401(client):
    res = client.get('/api/auth/me')
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "error_code": "AUTH_REQUIRED", "message": "인증 토큰이 필요합니다."}

def test_unknown_route_uses_envelope(client):
    res = client.get('/api/nothing-here')
    assert res.status_code == 404
    assert res.get_json()['success'] is False

def test_create_post_with_media_and_links(client, storage, make_user, auth_headers):
    alice = make_user("alice")
    res = client.post('/api/posts', headers=auth_headers(alice), content_type='multipart/form-data', data={
        "text": "beach day",
        "visibility": "followers",
        "links": json.dumps([{"url": "https://example.com/article", "title": "Article"}]),
        "media": [(io.BytesIO(b"jpeg-bytes"), "beach.jpg"), (io.BytesIO(b"mp4-bytes"), "wave.mp4")],
    })

    assert res.status_code == 201
    data = res.get_json()['data']
    assert data['author']['username'] == "alice"
    assert data['visibility'] == "followers"
    assert [m['type'] for m in data['content']['media']] == ["image", "video"]
    assert 'storage_ref' not in data['content']['media'][0]
    assert data['content']['links'][0]['title'] == "Article"
    assert len(storage.objects) == 2

def test_create_empty_post_is_400(client, make_user, auth_headers):
    alice = make_user("alice")
    res = client.post('/api/posts', headers=auth_headers(alice), content_type='multipart/form-data', data={"text": " "})
    assert res.status_code == 400
    assert res.get_json()['error_code'] == "EMPTY_POST"

def test_bad_links_json_is_validation_error(client, make_user, auth_headers):
    alice = make_user("alice")
    res = client.post('/api/posts', headers=auth_headers(alice), content_type='multipart/form-data',
                      data={"text": "hi", "links": "[not json"})
    assert res.status_code == 400
    assert res.get_json()['error_code'] == "VALIDATION_ERROR"

def test_private_post_is_hidden_from_others(client, make_user, make_post, auth_headers):
    alice, bob = make_user("alice"), make_user("bob")
    post = make_post(alice, visibility=Visibility.PRIVATE)

    assert client.get(f'/api/posts/{post.post_id}', headers=auth_headers(bob)).status_code == 404
    assert client.get(f'/api/posts/{post.post_id}', headers=auth_headers(alice)).status_code == 200

def test_update_post_by_non_author_is_403(client, make_user, make_post, auth_headers):
    alice, bob = make_user("alice"), make_user("bob")
    post = make_post(alice)
    res = client.put(f'/api/posts/{post.post_id}', headers=auth_headers(bob), json={"text": "mine now"})
    assert res.status_code == 403
    assert res.get_json()['error_code'] == "NOT_POST_AUTHOR"

def test_update_post_marks_edited(client, make_user, make_post, auth_headers):
    alice = make_user("alice")
    post = make_post(alice)
    res = client.put(f'/api/posts/{post.post_id}', headers=auth_headers(alice), json={"text": "edited"})
    data = res.get_json()['data']
    assert res.status_code == 200
    assert data['content']['text'] == "edited"
    assert data['is_edited'] is True
    assert data['edited_at'] is not None

def test_like_and_duplicate_like(client, make_user, make_post, auth_headers):
    alice, bob = make_user("alice"), make_user("bob")
    post = make_post(alice)

    res = client.post(f'/api/posts/{post.post_id}/like', headers=auth_headers(bob))
    assert res.status_code == 200
    assert res.get_json()['data'] == {"likes_count": 1}

    res = client.post(f'/api/posts/{post.post_id}/like', headers=auth_headers(bob))
    assert res.status_code == 409
    assert res.get_json()['error_code'] == "ALREADY_LIKED"

    res = client.post(f'/api/posts/{post.post_id}/unlike', headers=auth_headers(bob))
    assert res.get_json()['data'] == {"likes_count": 0}

def test_comment_lifecycle(client, make_user, make_post, auth_headers):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    post = make_post(alice)

    res = client.post(f'/api/posts/{post.post_id}/comment', headers=auth_headers(bob), json={"text": "nice"})
    assert res.status_code == 201
    comment_id = res.get_json()['data']['comment_id']

    res = client.delete(f'/api/posts/{post.post_id}/comment/{comment_id}', headers=auth_headers(carol))
    assert res.status_code == 403

    res = client.delete(f'/api/posts/{post.post_id}/comment/{comment_id}', headers=auth_headers(alice))
    assert res.status_code == 200
    assert res.get_json()['success'] is True

def test_delete_post_reports_failed_media(client, storage, make_user, make_post, auth_headers):
    alice = make_user("alice")
    storage.fail_delete_refs.add("posts/a.jpg")
    post = make_post(alice, media_refs=["posts/a.jpg"])

    res = client.delete(f'/api/posts/{post.post_id}', headers=auth_headers(alice))

    assert res.status_code == 200
    assert res.get_json()['data'] == {"failed_media_refs": ["posts/a.jpg"]}

def test_follow_routes(client, make_user, auth_headers):
    alice, bob = make_user("alice"), make_user("bob")

    assert client.post(f'/api/users/{bob.user_id}/follow', headers=auth_headers(alice)).status_code == 200
    assert client.post(f'/api/users/{bob.user_id}/follow', headers=auth_headers(alice)).status_code == 409
    assert client.post(f'/api/users/{alice.user_id}/follow', headers=auth_headers(alice)).status_code == 400
    assert client.post('/api/users/missing/follow', headers=auth_headers(alice)).status_code == 404

    followers = client.get(f'/api/users/{bob.user_id}/followers').get_json()['data']
    assert [u['username'] for u in followers] == ["alice"]

    profile = client.get(f'/api/users/{bob.user_id}').get_json()['data']
    assert profile['followers_count'] == 1

def test_home_feed_pagination_payload(client, user_repo, make_user, make_post, auth_headers):
    alice = make_user("alice")
    for i in range(3):
        make_post(alice, minutes=i)

    res = client.get('/api/feed?page=1&limit=2', headers=auth_headers(alice))

    body = res.get_json()['data']
    assert res.status_code == 200
    assert len(body['posts']) == 2
    assert body['pagination'] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

def test_feed_rejects_bad_page(client, make_user, auth_headers):
    alice = make_user("alice")
    res = client.get('/api/feed?page=0', headers=auth_headers(alice))
    assert res.status_code == 400
    assert res.get_json()['error_code'] == "VALIDATION_ERROR"

def test_discover_and_user_posts_without_token(client, make_user, make_post):
    alice = make_user("alice")
    make_post(alice, minutes=1)
    make_post(alice, minutes=2, visibility=Visibility.FOLLOWERS)

    discover = client.get('/api/feed/discover').get_json()['data']
    user_posts = client.get(f'/api/posts/user/{alice.user_id}').get_json()['data']

    assert discover['pagination']['total'] == 1
    assert user_posts['pagination'] == {"page": 1, "limit": 10, "total": 1, "total_pages": 1}

def test_profile_picture_upload(client, storage, make_user, auth_headers):
    alice = make_user("alice")
    res = client.put('/api/users/profile-picture', headers=auth_headers(alice), content_type='multipart/form-data',
                     data={"profile_picture": (io.BytesIO(b"png-bytes"), "me.png")})
    assert res.status_code == 200
    assert res.get_json()['data']['profile_picture'].startswith("https://storage.test/profile-pictures/")

def test_search_users(client, make_user):
    make_user("alice")
    make_user("albert")
    make_user("bob")
    res = client.get('/api/users/search?q=AL')
    assert sorted(u['username'] for u in res.get_json()['data']) == ["albert", "alice"]
    assert client.get('/api/users/search?q=').status_code == 400

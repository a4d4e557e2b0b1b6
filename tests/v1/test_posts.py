# tests/v1/test_posts.py
"""Tests for post endpoints."""

import pytest
from fastapi import status

from inkwell.models import Comment, CommentStatus, Like, Post

POSTS_URL = "/api/v1/posts/"


@pytest.fixture()
def make_post(db_session):
    def _make_post(author, *, title="Post", content="Body", tags=None, is_published=True, view_count=0):
        post = Post(
            title=title,
            content=content,
            tags=tags or [],
            author_id=author.id,
            is_published=is_published,
            view_count=view_count,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


class TestListPosts:
    def test_only_published_posts_are_listed(self, client, author, make_post):
        visible = make_post(author, title="Visible")
        make_post(author, title="Draft", is_published=False)

        response = client.get(POSTS_URL)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [post["id"] for post in data["posts"]] == [visible.id]
        assert data["posts"][0]["author"]["username"] == "alice"

    def test_counts_and_is_liked(
        self, client, db_session, author, commenter, published_post, make_comment, auth_headers
    ):
        make_comment(published_post, commenter, status=CommentStatus.APPROVED)
        make_comment(published_post, commenter)
        db_session.add(Like(user_id=commenter.id, post_id=published_post.id))
        db_session.commit()

        as_commenter = client.get(POSTS_URL, headers=auth_headers(commenter)).json()["posts"][0]
        as_author = client.get(POSTS_URL, headers=auth_headers(author)).json()["posts"][0]

        assert as_commenter["comment_count"] == 2
        assert as_commenter["like_count"] == 1
        assert as_commenter["is_liked"] is True
        assert as_author["is_liked"] is False

    def test_search_tags_and_author_filters(self, client, author, commenter, make_post):
        python_post = make_post(author, title="Learning Python", tags=["python", "code"])
        rust_post = make_post(commenter, title="Rust notes", content="about python bindings", tags=["rust"])
        make_post(author, title="Cooking", tags=["food"])

        search = client.get(POSTS_URL, params={"search": "python"}).json()["posts"]
        by_tags = client.get(POSTS_URL, params={"tags": "rust, code"}).json()["posts"]
        by_author = client.get(POSTS_URL, params={"author_id": commenter.id}).json()["posts"]

        assert {p["id"] for p in search} == {python_post.id, rust_post.id}
        assert {p["id"] for p in by_tags} == {python_post.id, rust_post.id}
        assert [p["id"] for p in by_author] == [rust_post.id]

    def test_sorting(self, client, author, make_post):
        low = make_post(author, title="B", view_count=1)
        high = make_post(author, title="A", view_count=9)

        by_views = client.get(POSTS_URL, params={"sort_by": "view_count", "sort_order": "desc"})
        by_title = client.get(POSTS_URL, params={"sort_by": "title", "sort_order": "asc"})

        assert [p["id"] for p in by_views.json()["posts"]] == [high.id, low.id]
        assert [p["id"] for p in by_title.json()["posts"]] == [high.id, low.id]

    def test_invalid_sort_field(self, client):
        response = client.get(POSTS_URL, params={"sort_by": "password_hash"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_pagination(self, client, author, make_post):
        for i in range(3):
            make_post(author, title=f"P{i}")

        data = client.get(POSTS_URL, params={"page": 2, "limit": 2}).json()

        assert len(data["posts"]) == 1
        assert data["pagination"] == {
            "current_page": 2,
            "total_pages": 2,
            "total_items": 3,
            "items_per_page": 2,
            "has_next_page": False,
            "has_prev_page": True,
        }

    def test_empty_listing_has_zero_pages(self, client):
        pagination = client.get(POSTS_URL).json()["pagination"]

        assert pagination["total_pages"] == 0
        assert pagination["total_items"] == 0
        assert pagination["has_next_page"] is False


class TestGetPost:
    def test_detail_counts_view_and_shows_approved_comments(
        self, client, published_post, commenter, make_comment
    ):
        first = make_comment(published_post, commenter, content="one", status=CommentStatus.APPROVED)
        make_comment(published_post, commenter, content="pending")
        second = make_comment(published_post, commenter, content="two", status=CommentStatus.APPROVED)

        response = client.get(f"{POSTS_URL}{published_post.id}")
        again = client.get(f"{POSTS_URL}{published_post.id}")

        assert response.status_code == status.HTTP_200_OK
        post = response.json()["post"]
        assert post["view_count"] == 1
        assert again.json()["post"]["view_count"] == 2
        assert [c["id"] for c in post["comments"]] == [first.id, second.id]
        assert post["like_count"] == 0
        assert post["is_liked"] is False

    def test_unpublished_or_missing_post(self, client, db_session, author):
        draft = Post(title="Draft", content="x", author_id=author.id, is_published=False)
        db_session.add(draft)
        db_session.commit()

        assert client.get(f"{POSTS_URL}{draft.id}").status_code == status.HTTP_404_NOT_FOUND
        assert client.get(f"{POSTS_URL}9999").status_code == status.HTTP_404_NOT_FOUND


class TestWritePosts:
    def test_create_post_publishes_and_broadcasts(self, client, author, auth_headers, notifier):
        response = client.post(
            POSTS_URL,
            json={"title": "New", "content": "Fresh content", "tags": [" news ", ""]},
            headers=auth_headers(author),
        )

        assert response.status_code == status.HTTP_201_CREATED
        post = response.json()["post"]
        assert post["is_published"] is True
        assert post["published_at"] is not None
        assert post["tags"] == ["news"]
        assert post["author_id"] == author.id
        assert notifier.names() == ["post:created"]
        assert notifier.last("post:created")["post"].id == post["id"]

    def test_create_post_validation(self, client, author, auth_headers):
        too_many_tags = client.post(
            POSTS_URL,
            json={"title": "T", "content": "C", "tags": [f"t{i}" for i in range(11)]},
            headers=auth_headers(author),
        )
        no_title = client.post(POSTS_URL, json={"content": "C"}, headers=auth_headers(author))

        assert too_many_tags.status_code == status.HTTP_400_BAD_REQUEST
        assert no_title.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_post_requires_auth(self, client):
        response = client.post(POSTS_URL, json={"title": "T", "content": "C"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_author_updates_post(self, client, published_post, author, auth_headers, notifier):
        response = client.put(
            f"{POSTS_URL}{published_post.id}",
            json={"title": "Renamed"},
            headers=auth_headers(author),
        )

        assert response.status_code == status.HTTP_200_OK
        post = response.json()["post"]
        assert post["title"] == "Renamed"
        assert post["content"] == "First post body"
        assert notifier.names() == ["post:updated"]

    def test_non_author_cannot_update_or_delete(self, client, published_post, moderator, auth_headers):
        update = client.put(
            f"{POSTS_URL}{published_post.id}",
            json={"title": "Mine now"},
            headers=auth_headers(moderator),
        )
        delete = client.delete(f"{POSTS_URL}{published_post.id}", headers=auth_headers(moderator))

        assert update.status_code == status.HTTP_403_FORBIDDEN
        assert update.json()["detail"] == "Not authorized to update this post"
        assert delete.status_code == status.HTTP_403_FORBIDDEN

    def test_delete_cascades_to_comments_and_likes(
        self, client, db_session, published_post, author, commenter, pending_comment,
        auth_headers, notifier,
    ):
        post_id, comment_id = published_post.id, pending_comment.id
        db_session.add(Like(user_id=commenter.id, post_id=post_id))
        db_session.commit()

        response = client.delete(f"{POSTS_URL}{post_id}", headers=auth_headers(author))

        assert response.status_code == status.HTTP_200_OK
        assert notifier.last("post:deleted") == {"post_id": post_id}
        db_session.expunge_all()
        assert db_session.get(Post, post_id) is None
        assert db_session.get(Comment, comment_id) is None
        assert db_session.query(Like).filter(Like.post_id == post_id).count() == 0


class TestLikes:
    def test_toggle_like(self, client, published_post, commenter, auth_headers, notifier):
        url = f"{POSTS_URL}{published_post.id}/like"

        liked = client.post(url, headers=auth_headers(commenter))
        unliked = client.post(url, headers=auth_headers(commenter))

        assert liked.json() == {"message": "Post liked", "liked": True, "like_count": 1}
        assert unliked.json() == {"message": "Post unliked", "liked": False, "like_count": 0}
        assert notifier.last("post:likeToggled") == {
            "post_id": published_post.id,
            "liked": False,
            "user_id": commenter.id,
        }

    def test_like_missing_post(self, client, commenter, auth_headers):
        response = client.post(f"{POSTS_URL}404/like", headers=auth_headers(commenter))

        assert response.status_code == status.HTTP_404_NOT_FOUND

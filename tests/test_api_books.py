"""Tests for the book endpoints."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from bookshelf import TaggedCache
from bookshelf.api.repository import Repository

ADMIN = {"X-Roles": "ROLE_ADMIN"}

V2 = {"Accept": "application/json;version=2.0"}


@pytest.fixture
def page_queries(monkeypatch) -> list:
    """Record every listing query that reaches the database."""
    calls = []
    original = Repository.find_page

    def spy(self, pagination, *options):
        calls.append((self.model.__name__, pagination.page, pagination.limit))
        return original(self, pagination, *options)

    monkeypatch.setattr(Repository, "find_page", spy)
    return calls


class TestListBooks:
    """Tests for GET /api/books."""

    def test_default_pagination(self, client: TestClient, catalog: dict) -> None:
        response = client.get("/api/books")
        assert response.status_code == 200
        books = response.json()
        assert [b["id"] for b in books] == catalog["books"][:3]

    def test_page_and_limit(self, client: TestClient, catalog: dict) -> None:
        response = client.get("/api/books", params={"page": 2, "limit": 3})
        assert [b["id"] for b in response.json()] == catalog["books"][3:]

    def test_listing_shape(self, client: TestClient, catalog: dict) -> None:
        book = client.get("/api/books", params={"limit": 1}).json()[0]
        assert book == {
            "id": catalog["books"][0],
            "title": "The Hobbit",
            "coverText": "There and back again",
            "author": {
                "id": catalog["authors"][0],
                "lastName": "Tolkien",
                "firstName": "J.R.R",
            },
            "_links": {
                "self": {"href": f"http://testserver/api/books/{catalog['books'][0]}"}
            },
        }

    def test_listing_never_carries_admin_links(
        self, client: TestClient, catalog: dict
    ) -> None:
        books = client.get("/api/books", headers=ADMIN).json()
        assert all(set(b["_links"]) == {"self"} for b in books)

    def test_invalid_pagination(self, client: TestClient, catalog: dict) -> None:
        response = client.get("/api/books", params={"page": 0})
        assert response.status_code == 400
        body = response.json()
        assert body["status"] == 400
        assert body["errors"][0]["property_path"] == "page"

    def test_version_two_listing(
        self, client: TestClient, cache: TaggedCache, catalog: dict
    ) -> None:
        books = client.get("/api/books", headers=V2).json()
        assert books[1]["comment"] == "First volume"
        assert cache.contains("getAllBooks-1-3-2.0")
        assert not cache.contains("getAllBooks-1-3")


class TestListingCache:
    """Listing pages are cached under booksCache and purged by book writes."""

    def test_page_is_cached_under_key(
        self, client: TestClient, cache: TaggedCache, catalog: dict, page_queries: list
    ) -> None:
        client.get("/api/books", params={"page": 1, "limit": 3})
        assert cache.contains("getAllBooks-1-3")
        assert cache.adapter.keys_for_tag("booksCache") == {"getAllBooks-1-3"}

        client.get("/api/books", params={"page": 1, "limit": 3})
        assert page_queries == [("Book", 1, 3)]

    def test_create_book_forces_recompute(
        self, client: TestClient, cache: TaggedCache, catalog: dict, page_queries: list
    ) -> None:
        client.get("/api/books", params={"page": 1, "limit": 3})
        assert len(page_queries) == 1

        response = client.post("/api/books", json={"title": "Children of Dune"}, headers=ADMIN)
        assert response.status_code == 201
        assert not cache.contains("getAllBooks-1-3")

        client.get("/api/books", params={"page": 1, "limit": 3})
        assert len(page_queries) == 2

    def test_update_and_delete_purge(
        self, client: TestClient, cache: TaggedCache, catalog: dict
    ) -> None:
        book_id = catalog["books"][0]

        client.get("/api/books")
        client.put(f"/api/books/{book_id}", json={"title": "Hobbit"}, headers=ADMIN)
        assert not cache.contains("getAllBooks-1-3")

        client.get("/api/books")
        client.delete(f"/api/books/{book_id}")
        assert not cache.contains("getAllBooks-1-3")

    def test_book_writes_keep_author_pages(
        self, client: TestClient, cache: TaggedCache, catalog: dict
    ) -> None:
        client.get("/api/authors")
        client.post("/api/books", json={"title": "Dune"}, headers=ADMIN)
        assert cache.contains("getAllAuthors-1-3")

    def test_database_failure_is_503(
        self, client: TestClient, cache: TaggedCache, catalog: dict, monkeypatch
    ) -> None:
        def broken(self, pagination, *options):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(Repository, "find_page", broken)
        response = client.get("/api/books")
        assert response.status_code == 503
        assert response.json()["status"] == 503
        assert not cache.contains("getAllBooks-1-3")


class TestBookDetail:
    """Tests for GET /api/books/{id}."""

    def test_version_one_hides_comment(self, client: TestClient, catalog: dict) -> None:
        book = client.get(f"/api/books/{catalog['books'][1]}").json()
        assert "comment" not in book
        assert book["title"] == "The Fellowship of the Ring"

    def test_version_two_shows_comment(self, client: TestClient, catalog: dict) -> None:
        book = client.get(f"/api/books/{catalog['books'][1]}", headers=V2).json()
        assert book["comment"] == "First volume"
        assert list(book) == ["id", "title", "coverText", "author", "comment", "_links"]

    def test_unknown_well_formed_version_accepted(
        self, client: TestClient, catalog: dict
    ) -> None:
        headers = {"Accept": "application/json;version=9.0"}
        response = client.get(f"/api/books/{catalog['books'][1]}", headers=headers)
        assert response.status_code == 200
        assert "comment" in response.json()

    def test_malformed_version_rejected(self, client: TestClient, catalog: dict) -> None:
        headers = {"Accept": "application/json;version=banana"}
        response = client.get(f"/api/books/{catalog['books'][1]}", headers=headers)
        assert response.status_code == 406

    def test_admin_links(self, client: TestClient, catalog: dict) -> None:
        book_id = catalog["books"][0]
        links = client.get(f"/api/books/{book_id}", headers=ADMIN).json()["_links"]
        href = f"http://testserver/api/books/{book_id}"
        assert links == {
            "self": {"href": href},
            "delete": {"href": href},
            "update": {"href": href},
        }

    def test_anonymous_links(self, client: TestClient, catalog: dict) -> None:
        links = client.get(f"/api/books/{catalog['books'][0]}").json()["_links"]
        assert list(links) == ["self"]

    def test_not_found(self, client: TestClient, catalog: dict) -> None:
        response = client.get("/api/books/999")
        assert response.status_code == 404
        assert response.json() == {"status": 404, "message": "Book 999 not found"}


class TestCreateBook:
    """Tests for POST /api/books."""

    def test_requires_admin(self, client: TestClient, catalog: dict) -> None:
        response = client.post("/api/books", json={"title": "Dune"})
        assert response.status_code == 403
        assert response.json()["message"] == (
            "You do not have sufficient rights to create a book"
        )

    def test_created(self, client: TestClient, catalog: dict) -> None:
        author_id = catalog["authors"][1]
        response = client.post(
            "/api/books",
            json={
                "title": "Children of Dune",
                "coverText": "Leto II",
                "comment": "Third volume",
                "idAuthor": author_id,
            },
            headers=ADMIN,
        )
        assert response.status_code == 201
        book = response.json()
        assert response.headers["Location"] == f"http://testserver/api/books/{book['id']}"
        assert book["author"]["id"] == author_id
        assert "comment" not in book

        stored = client.get(f"/api/books/{book['id']}", headers=V2).json()
        assert stored["comment"] == "Third volume"

    def test_unknown_author_means_no_author(self, client: TestClient, catalog: dict) -> None:
        response = client.post(
            "/api/books", json={"title": "Orphan", "idAuthor": 999}, headers=ADMIN
        )
        assert response.status_code == 201
        assert response.json()["author"] is None

    @pytest.mark.parametrize(
        "body, message",
        [
            ({"title": "   "}, "The book title is required"),
            ({"title": ""}, None),
            ({"title": "x" * 256}, None),
            ({}, None),
        ],
    )
    def test_invalid_title(
        self, client: TestClient, cache: TaggedCache, catalog: dict, body: dict, message
    ) -> None:
        client.get("/api/books")
        response = client.post("/api/books", json=body, headers=ADMIN)
        assert response.status_code == 400
        errors = response.json()["errors"]
        assert errors[0]["property_path"] == "title"
        if message:
            assert errors[0]["message"] == message
        # Rejected before any write, so the listing survives
        assert cache.contains("getAllBooks-1-3")


class TestUpdateBook:
    """Tests for PUT /api/books/{id}."""

    def test_requires_admin(self, client: TestClient, catalog: dict) -> None:
        response = client.put(f"/api/books/{catalog['books'][0]}", json={"title": "X"})
        assert response.status_code == 403

    def test_updates_fields_and_author(self, client: TestClient, catalog: dict) -> None:
        book_id = catalog["books"][0]
        herbert = catalog["authors"][1]
        response = client.put(
            f"/api/books/{book_id}",
            json={"title": "The Hobbit (revised)", "coverText": "New", "idAuthor": herbert},
            headers=ADMIN,
        )
        assert response.status_code == 204

        book = client.get(f"/api/books/{book_id}").json()
        assert book["title"] == "The Hobbit (revised)"
        assert book["coverText"] == "New"
        assert book["author"]["id"] == herbert

    def test_missing_author_clears_association(
        self, client: TestClient, catalog: dict
    ) -> None:
        book_id = catalog["books"][0]
        client.put(f"/api/books/{book_id}", json={"title": "The Hobbit"}, headers=ADMIN)
        assert client.get(f"/api/books/{book_id}").json()["author"] is None

    def test_comment_is_not_updated(self, client: TestClient, catalog: dict) -> None:
        book_id = catalog["books"][1]
        client.put(
            f"/api/books/{book_id}",
            json={"title": "Fellowship", "comment": "ignored"},
            headers=ADMIN,
        )
        assert client.get(f"/api/books/{book_id}", headers=V2).json()["comment"] == (
            "First volume"
        )

    def test_not_found(self, client: TestClient, catalog: dict) -> None:
        response = client.put("/api/books/999", json={"title": "X"}, headers=ADMIN)
        assert response.status_code == 404


class TestDeleteBook:
    """Tests for DELETE /api/books/{id}."""

    def test_deleted(self, client: TestClient, catalog: dict) -> None:
        book_id = catalog["books"][0]
        assert client.delete(f"/api/books/{book_id}").status_code == 204
        assert client.get(f"/api/books/{book_id}").status_code == 404

    def test_not_found(self, client: TestClient, catalog: dict) -> None:
        assert client.delete("/api/books/999").status_code == 404


class TestOutOfRangeIntegers:
    """Integers wider than a SQL INTEGER are handled as client input."""

    HUGE = 10**20

    def test_detail_is_404(self, client: TestClient, catalog: dict) -> None:
        response = client.get(f"/api/books/{self.HUGE}")
        assert response.status_code == 404

    def test_update_and_delete_are_404(self, client: TestClient, catalog: dict) -> None:
        url = f"/api/books/{self.HUGE}"
        assert client.put(url, json={"title": "X"}, headers=ADMIN).status_code == 404
        assert client.delete(url).status_code == 404

    def test_unknown_author_means_no_author(self, client: TestClient, catalog: dict) -> None:
        response = client.post(
            "/api/books", json={"title": "Orphan", "idAuthor": self.HUGE}, headers=ADMIN
        )
        assert response.status_code == 201
        assert response.json()["author"] is None

    @pytest.mark.parametrize("param", ["page", "limit"])
    def test_pagination_is_400(self, client: TestClient, catalog: dict, param: str) -> None:
        response = client.get("/api/books", params={param: self.HUGE})
        assert response.status_code == 400
        assert response.json()["errors"][0]["property_path"] == param

    def test_offset_past_last_row_is_empty(
        self, client: TestClient, catalog: dict
    ) -> None:
        response = client.get("/api/books", params={"page": 2**62, "limit": 4})
        assert response.status_code == 200
        assert response.json() == []

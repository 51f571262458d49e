"""Tests for the JSON API."""

from datetime import date

import pytest
from starlette.testclient import TestClient

from tipjar.config import Config
from tipjar.exceptions import CrawlFailed
from tipjar.models import DEFAULT_FOLDER, Tip
from tipjar.services import build_services
from tipjar.web import create_app

from conftest import DownLLM, FakeCrawler, FakeLLM

ALICE = {"Authorization": "Bearer tok-a"}
BOB = {"Authorization": "Bearer tok-b"}


class MetadataCrawler(FakeCrawler):
    def __init__(self, result):
        super().__init__()
        self.result = result

    def metadata(self, url):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def make_client(tmp_path):
    def _make(llm=None, crawler=None):
        config = Config(
            openai_api_key="test-key",
            data_dir=tmp_path / "data",
            api_tokens={"tok-a": "alice", "tok-b": "bob"},
        )
        services = build_services(config, llm=llm or FakeLLM(), crawler=crawler)
        app = create_app(services, today=lambda: date(2024, 6, 10))
        return TestClient(app), services

    return _make


def test_health(make_client):
    client, _ = make_client()
    assert client.get("/api/health").json() == {"status": "ok"}


class TestTips:
    def test_submit_with_folder_skips_model(self, make_client):
        llm = FakeLLM()
        client, _ = make_client(llm)
        resp = client.post(
            "/api/tips", json={"content": "buy milk, walk dog", "folder": "Errands"}, headers=ALICE
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["count"] == 2
        assert body["aiProcessed"] is False
        assert {t["folder"] for t in body["tips"]} == {"Errands"}
        assert llm.calls == []

    def test_submit_survives_model_outage(self, make_client):
        client, _ = make_client(DownLLM())
        resp = client.post("/api/tips", json={"content": "some content"}, headers=ALICE)

        assert resp.status_code == 201
        tip = resp.json()["tips"][0]
        assert tip["folder"] == DEFAULT_FOLDER
        assert tip["aiProcessed"] is False
        assert tip["aiError"]

    @pytest.mark.parametrize(
        "body",
        [{"content": ""}, {"content": "  ", "url": ""}, {"content": 5}, {"content": "x", "url": 3}],
    )
    def test_submit_rejects_bad_input(self, make_client, body):
        client, _ = make_client()
        resp = client.post("/api/tips", json=body, headers=ALICE)
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_invalid_json_body(self, make_client):
        client, _ = make_client()
        resp = client.post(
            "/api/tips",
            content=b"{not json",
            headers={**ALICE, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400

    def test_identities_are_isolated(self, make_client):
        client, _ = make_client()
        client.post("/api/tips", json={"content": "bob's tip", "folder": "Mine"}, headers=BOB)

        assert client.get("/api/tips", headers=ALICE).json() == []
        assert client.get("/api/tips").json() == []
        assert [t["content"] for t in client.get("/api/tips", headers=BOB).json()] == ["bob's tip"]

    def test_update_and_views(self, make_client):
        client, _ = make_client()
        tip = client.post(
            "/api/tips", json={"content": "read a book", "folder": "Books"}, headers=ALICE
        ).json()["tips"][0]

        resp = client.patch(f"/api/tips/{tip['id']}", json={"isProcessed": True}, headers=ALICE)
        assert resp.status_code == 200
        assert resp.json()["tip"]["isProcessed"] is True

        assert client.get("/api/tips?view=active", headers=ALICE).json() == []
        assert len(client.get("/api/tips?view=processed", headers=ALICE).json()) == 1
        assert client.get("/api/tips?view=bogus", headers=ALICE).status_code == 400

    @pytest.mark.parametrize(
        "changes",
        [
            {"folder": 123},
            {"title": None},
            {"tags": "food"},
            {"tags": ["food", 1]},
            {"isProcessed": "yes"},
            {"relevanceDate": 20240701},
        ],
    )
    def test_update_rejects_wrong_types(self, make_client, changes):
        client, services = make_client()
        tip = client.post(
            "/api/tips", json={"content": "read a book", "folder": "Books"}, headers=ALICE
        ).json()["tips"][0]

        resp = client.patch(f"/api/tips/{tip['id']}", json=changes, headers=ALICE)
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert services.tips.get("alice", tip["id"]).folder == "Books"

    def test_update_accepts_null_folder_and_tag_list(self, make_client):
        client, _ = make_client()
        tip = client.post(
            "/api/tips", json={"content": "read a book", "folder": "Books"}, headers=ALICE
        ).json()["tips"][0]

        resp = client.patch(
            f"/api/tips/{tip['id']}",
            json={"folder": None, "tags": ["reading"], "relevanceDate": None},
            headers=ALICE,
        )
        assert resp.status_code == 200
        assert resp.json()["tip"]["folder"] == DEFAULT_FOLDER
        assert resp.json()["tip"]["tags"] == ["reading"]

    @pytest.mark.parametrize("split", ["false", 0, "no"])
    def test_split_must_be_boolean(self, make_client, split):
        llm = FakeLLM()
        client, _ = make_client(llm)
        for path in ("/api/tips", "/api/tips/preview"):
            resp = client.post(path, json={"content": "a, b", "split": split}, headers=ALICE)
            assert resp.status_code == 400
        assert llm.calls == []

    def test_split_false_keeps_one_tip(self, make_client):
        llm = FakeLLM({"category": "Food"})
        client, _ = make_client(llm)
        resp = client.post(
            "/api/tips/preview", json={"content": "ramen, sushi", "split": False}, headers=ALICE
        )
        assert [t["content"] for t in resp.json()["tips"]] == ["ramen, sushi"]
        assert llm.calls[0]["max_output_tokens"] == 500

    def test_update_missing_tip(self, make_client):
        client, _ = make_client()
        resp = client.patch("/api/tips/nope", json={"folder": "X"}, headers=ALICE)
        assert resp.status_code == 404

    def test_delete(self, make_client):
        client, _ = make_client()
        tip = client.post(
            "/api/tips", json={"content": "x", "folder": "F"}, headers=ALICE
        ).json()["tips"][0]
        assert client.delete(f"/api/tips/{tip['id']}", headers=ALICE).status_code == 200
        assert client.delete(f"/api/tips/{tip['id']}", headers=ALICE).status_code == 404

    def test_preview_does_not_store(self, make_client):
        client, _ = make_client()
        resp = client.post(
            "/api/tips/preview", json={"content": "a, b", "folder": "F"}, headers=ALICE
        )
        assert len(resp.json()["tips"]) == 2
        assert client.get("/api/tips", headers=ALICE).json() == []

    def test_context_reclassifies(self, make_client):
        llm = FakeLLM({"category": "Food", "summary": "• Ramen."})
        client, _ = make_client(llm)
        tip = client.post(
            "/api/tips", json={"content": "ichiran", "folder": "Inbox"}, headers=ALICE
        ).json()["tips"][0]

        resp = client.post(
            f"/api/tips/{tip['id']}/context", json={"userContext": "ramen shop"}, headers=ALICE
        )
        assert resp.status_code == 200
        assert resp.json()["tip"]["folder"] == "Food"
        assert resp.json()["tip"]["userContext"] == "ramen shop"

        missing = client.post(f"/api/tips/{tip['id']}/context", json={}, headers=ALICE)
        assert missing.status_code == 400


class TestFolders:
    def test_crud(self, make_client):
        client, _ = make_client()
        resp = client.post("/api/folders", json={"name": "Recipes"}, headers=ALICE)
        assert resp.status_code == 201
        folder = resp.json()

        assert client.post("/api/folders", json={"name": "Recipes"}, headers=ALICE).status_code == 400
        assert [f["name"] for f in client.get("/api/folders", headers=ALICE).json()] == ["Recipes"]

        renamed = client.put(
            "/api/folders", json={"id": folder["id"], "name": "Cooking"}, headers=ALICE
        )
        assert renamed.json()["name"] == "Cooking"
        assert client.put("/api/folders", json={"name": "X"}, headers=ALICE).status_code == 400
        assert client.put(
            "/api/folders", json={"id": "nope", "name": "X"}, headers=ALICE
        ).status_code == 404

        deleted = client.delete(f"/api/folders?id={folder['id']}", headers=ALICE)
        assert deleted.json() == {"success": True}
        assert client.get("/api/folders", headers=ALICE).json() == []

    def test_available_includes_tip_folders(self, make_client):
        client, _ = make_client()
        client.post("/api/folders", json={"name": "Recipes"}, headers=ALICE)
        client.post("/api/tips", json={"content": "x", "folder": "Gadgets"}, headers=ALICE)

        body = client.get("/api/folders/available", headers=ALICE).json()
        assert body == {
            "folders": ["Gadgets", "Recipes"],
            "userFolders": ["Recipes"],
            "aiGeneratedFolders": ["Gadgets"],
        }


def test_notifications(make_client):
    client, services = make_client()
    services.tips.create("alice", Tip(content="book flights", relevance_date="2024-06-12"))
    services.tips.create("alice", Tip(content="far away", relevance_date="2024-08-01"))

    body = client.get("/api/notifications", headers=ALICE).json()
    assert body["count"] == 1
    assert body["notifications"][0]["daysUntil"] == 2


class TestUrlMetadata:
    def test_not_configured(self, make_client):
        client, _ = make_client()
        resp = client.post("/api/url-metadata", json={"url": "https://example.com"})
        assert resp.status_code == 503

    def test_returns_metadata(self, make_client):
        meta = {"title": "Example", "favicon": "https://example.com/favicon.ico"}
        client, _ = make_client(crawler=MetadataCrawler(meta))
        resp = client.post("/api/url-metadata", json={"url": "https://example.com"})
        assert resp.json() == {"metadata": meta}

    def test_crawl_failure(self, make_client):
        client, _ = make_client(crawler=MetadataCrawler(CrawlFailed("timeout")))
        resp = client.post("/api/url-metadata", json={"url": "https://example.com"})
        assert resp.status_code == 502

    def test_url_required(self, make_client):
        client, _ = make_client(crawler=MetadataCrawler({}))
        assert client.post("/api/url-metadata", json={}).status_code == 400

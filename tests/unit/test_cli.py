"""Tests for the blogstore CLI.

HTTP commands run against an httpx.MockTransport; the orphans command runs
against a throwaway local store.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

from blogstore import cli
from blogstore.config import get_settings
from blogstore.storage.naming import generate_content_key


class FakeAPI:
    """Canned responses keyed by (method, path), plus a request log."""

    def __init__(self) -> None:
        self.responses: dict[tuple[str, str], tuple[int, dict]] = {}
        self.requests: list[httpx.Request] = []

    def reply(self, method: str, path: str, status: int, body: dict) -> None:
        self.responses[(method, path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses[(request.method, request.url.path)]
        return httpx.Response(status, json=body)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def api(monkeypatch) -> FakeAPI:
    fake = FakeAPI()

    def make_client(api_base):
        return httpx.Client(base_url=api_base, transport=httpx.MockTransport(fake.handler))

    monkeypatch.setattr(cli, "make_client", make_client)
    monkeypatch.delenv("UPLOAD_TOKEN", raising=False)
    return fake


@pytest.fixture
def post_file(tmp_path) -> Path:
    path = tmp_path / "post.md"
    path.write_text("# Hello")
    return path


@pytest.mark.fast
class TestPublish:
    """Tests for `blogstore publish`."""

    def test_publish(self, runner, api, post_file):
        api.reply("POST", "/upload", 200, {
            "message": "Uploaded",
            "postId": "abc123",
            "contentKey": "2026-02-09T08-15-02-123Z-a3f2b1-post.md",
            "headerKey": None,
            "slug": "my-first-post",
        })

        result = runner.invoke(cli.main, [
            "publish", str(post_file),
            "--title", "My First Post",
            "--category", "general",
            "--token", "s3cret",
        ])

        assert result.exit_code == 0, result.output
        assert "my-first-post" in result.output
        assert "abc123" in result.output

        request = api.requests[0]
        body = request.content
        assert b'name="title"' in body
        assert b"My First Post" in body
        assert b'name="token"' in body
        assert b'filename="post.md"' in body
        assert b"Content-Type: text/markdown" in body

    def test_token_from_environment(self, runner, api, post_file, monkeypatch):
        api.reply("POST", "/upload", 200, {
            "postId": "abc", "contentKey": "k.md", "slug": "s",
        })
        monkeypatch.setenv("UPLOAD_TOKEN", "from-env")

        result = runner.invoke(cli.main, [
            "publish", str(post_file), "--title", "T", "--category", "c",
        ])

        assert result.exit_code == 0, result.output
        assert b"from-env" in api.requests[0].content

    def test_missing_token(self, runner, api, post_file):
        result = runner.invoke(cli.main, [
            "publish", str(post_file), "--title", "T", "--category", "c",
        ])
        assert result.exit_code == 1
        assert "UPLOAD_TOKEN not configured" in result.output
        assert api.requests == []

    def test_validation_error_details(self, runner, api, post_file):
        api.reply("POST", "/upload", 400, {
            "message": "Validation failed",
            "details": [{"field": "title", "message": "Title is required"}],
        })

        result = runner.invoke(cli.main, [
            "publish", str(post_file), "--title", " ", "--category", "c", "--token", "t",
        ])

        assert result.exit_code == 1
        assert "Validation failed" in result.output
        assert "Title is required" in result.output

    def test_api_option(self, runner, api, post_file):
        api.reply("POST", "/upload", 200, {"postId": "a", "contentKey": "k", "slug": "s"})

        runner.invoke(cli.main, [
            "--api", "http://blog.internal:9000/",
            "publish", str(post_file), "--title", "T", "--category", "c", "--token", "t",
        ])

        assert str(api.requests[0].url) == "http://blog.internal:9000/upload"


@pytest.mark.fast
class TestImage:
    """Tests for `blogstore image`."""

    def test_image(self, runner, api, tmp_path):
        path = tmp_path / "cover.png"
        path.write_bytes(b"\x89PNG")
        api.reply("POST", "/upload-img", 200, {"message": "Uploaded", "key": "a3f2b1c4-cover.png"})

        result = runner.invoke(cli.main, ["image", str(path), "--token", "t"])

        assert result.exit_code == 0, result.output
        assert "a3f2b1c4-cover.png" in result.output
        assert b"Content-Type: image/png" in api.requests[0].content


@pytest.mark.fast
class TestListAndShow:
    """Tests for `blogstore list` and `blogstore show`."""

    def test_list(self, runner, api):
        api.reply("GET", "/list", 200, {"posts": [{
            "id": "abc123",
            "title": "My First Post",
            "category": "general",
            "slug": "my-first-post",
            "createdAt": "2026-02-09T08:15:02Z",
        }]})

        result = runner.invoke(cli.main, ["list"])

        assert result.exit_code == 0, result.output
        assert "my-first-post" in result.output
        assert "Posts (1 total)" in result.output

    def test_list_empty(self, runner, api):
        api.reply("GET", "/list", 200, {"posts": []})
        result = runner.invoke(cli.main, ["list"])
        assert result.exit_code == 0
        assert "No posts yet" in result.output

    def test_show_raw(self, runner, api):
        api.reply("GET", "/post/my-first-post", 200, {"post": {
            "id": "abc123",
            "title": "My First Post",
            "category": "general",
            "slug": "my-first-post",
            "markdown": "# Hello",
        }})

        result = runner.invoke(cli.main, ["show", "my-first-post", "--raw"])

        assert result.exit_code == 0, result.output
        assert "# Hello" in result.output

    def test_show_missing(self, runner, api):
        api.reply("GET", "/post/nope", 404, {"message": "Post not found", "details": None})
        result = runner.invoke(cli.main, ["show", "nope"])
        assert result.exit_code == 1
        assert "Post not found" in result.output


@pytest.mark.fast
class TestDelete:
    """Tests for `blogstore delete`."""

    def test_delete(self, runner, api):
        api.reply("DELETE", "/post/abc123", 200, {
            "message": "Post abc123 deleted successfully",
            "id": "abc123",
            "contentRemoved": True,
            "orphanedKeys": [],
        })

        result = runner.invoke(cli.main, ["delete", "abc123", "--yes"])

        assert result.exit_code == 0, result.output
        assert "deleted successfully" in result.output

    def test_delete_reports_orphans(self, runner, api):
        api.reply("DELETE", "/post/abc123", 200, {
            "message": "Post abc123 deleted; content cleanup pending",
            "id": "abc123",
            "contentRemoved": False,
            "orphanedKeys": ["k.md"],
        })

        result = runner.invoke(cli.main, ["delete", "abc123", "--yes"])

        assert "k.md" in result.output

    def test_delete_requires_confirmation(self, runner, api):
        result = runner.invoke(cli.main, ["delete", "abc123"], input="n\n")
        assert result.exit_code == 1
        assert api.requests == []


@pytest.mark.fast
class TestOrphans:
    """Tests for `blogstore orphans`."""

    @pytest.fixture
    def local_store(self, tmp_path, monkeypatch):
        root = tmp_path / "blobs"
        monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
        monkeypatch.setenv("STORAGE_BACKEND", "local")
        monkeypatch.setenv("STORAGE_ROOT", str(root))
        get_settings.cache_clear()
        yield root
        get_settings.cache_clear()

    def _write_old_blob(self, root: Path) -> Path:
        key = generate_content_key(
            "lost.md", now=datetime.now(timezone.utc) - timedelta(hours=3)
        )
        path = root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"# lost")
        return path

    def test_report(self, runner, local_store):
        path = self._write_old_blob(local_store)

        result = runner.invoke(cli.main, ["orphans"])

        assert result.exit_code == 0, result.output
        assert "Orphan blobs (1)" in result.output
        assert path.exists()

    def test_prune(self, runner, local_store):
        path = self._write_old_blob(local_store)

        result = runner.invoke(cli.main, ["orphans", "--prune"])

        assert result.exit_code == 0, result.output
        assert "Pruned blobs (1)" in result.output
        assert not path.exists()

    def test_none(self, runner, local_store):
        result = runner.invoke(cli.main, ["orphans"])
        assert result.exit_code == 0, result.output
        assert "No orphan blobs" in result.output


@pytest.mark.fast
class TestServe:
    """Tests for `blogstore serve`."""

    def test_serve_starts_uvicorn(self, runner, monkeypatch):
        calls = []
        monkeypatch.setattr("uvicorn.run", lambda *args, **kwargs: calls.append((args, kwargs)))

        result = runner.invoke(cli.main, ["serve", "--port", "9000"])

        assert result.exit_code == 0, result.output
        assert calls == [(("blogstore.main:app",), {"host": "127.0.0.1", "port": 9000, "reload": False})]

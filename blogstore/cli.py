"""
Blogstore CLI Tool

Command-line client for publishing and managing posts.

Usage:
    blogstore publish post.md --title "..." --category general
    blogstore image cover.png
    blogstore list
    blogstore show my-first-post
    blogstore delete <post-id>
    blogstore orphans [--prune]
    blogstore serve
"""
import asyncio
import mimetypes
import os
import sys
from pathlib import Path

import click
import httpx
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from blogstore import __version__

# Load environment variables
load_dotenv()

console = Console()

DEFAULT_API_BASE = "http://localhost:8000"


def make_client(api_base: str) -> httpx.Client:
    """HTTP client for the Blogstore API."""
    return httpx.Client(base_url=api_base, timeout=30.0)


def _file_part(path: Path) -> tuple[str, bytes, str]:
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    if path.suffix.lower() in (".md", ".markdown"):
        content_type = "text/markdown"
    return path.name, path.read_bytes(), content_type


def _fail(response: httpx.Response) -> None:
    """Print an API error and exit."""
    try:
        body = response.json()
    except ValueError:
        body = {"message": response.text}
    console.print(f"[red]✗ {response.status_code}: {body.get('message')}[/red]")
    for detail in body.get("details") or []:
        console.print(f"  [yellow]{detail.get('field')}[/yellow]: {detail.get('message')}")
    sys.exit(1)


def _require_token(token: str | None) -> str:
    if not token:
        console.print("[red]✗ UPLOAD_TOKEN not configured[/red]")
        console.print("\nSet it in .env or pass --token:")
        console.print("[yellow]echo \"UPLOAD_TOKEN=...\" >> .env[/yellow]")
        sys.exit(1)
    return token


@click.group()
@click.version_option(version=__version__, prog_name="Blogstore")
@click.option(
    "--api",
    "api_base",
    envvar="BLOGSTORE_API_URL",
    default=DEFAULT_API_BASE,
    show_default=True,
    help="Blogstore API base URL",
)
@click.pass_context
def main(ctx: click.Context, api_base: str):
    """
    Blogstore - publish markdown posts and images.
    """
    ctx.obj = {"api_base": api_base.rstrip("/")}


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--title", required=True, help="Post title")
@click.option("--category", required=True, help="Post category")
@click.option("--description", default=None, help="Short summary")
@click.option("--tags", default=None, help="Free-text tags")
@click.option(
    "--header",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Header image",
)
@click.option("--token", envvar="UPLOAD_TOKEN", default=None, help="Upload token")
@click.pass_context
def publish(ctx, file: Path, title, category, description, tags, header, token):
    """
    Publish a markdown file as a post.

    Example:
        blogstore publish post.md --title "My First Post" --category general
    """
    data = {"title": title, "category": category, "token": _require_token(token)}
    if description:
        data["description"] = description
    if tags:
        data["tags"] = tags

    files = {"file": _file_part(file)}
    if header:
        files["header"] = _file_part(header)

    try:
        with make_client(ctx.obj["api_base"]) as client:
            response = client.post("/upload", data=data, files=files)
    except httpx.HTTPError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if response.status_code != 200:
        _fail(response)

    body = response.json()
    console.print(f"[green]✓[/green] Published [cyan]{body['slug']}[/cyan]")
    console.print(f"Post ID: [cyan]{body['postId']}[/cyan]")
    console.print(f"Content key: [dim]{body['contentKey']}[/dim]")
    if body.get("headerKey"):
        console.print(f"Header key: [dim]{body['headerKey']}[/dim]")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--token", envvar="UPLOAD_TOKEN", default=None, help="Upload token")
@click.pass_context
def image(ctx, file: Path, token):
    """
    Upload a standalone image.

    Example:
        blogstore image cover.png
    """
    data = {"token": _require_token(token)}
    try:
        with make_client(ctx.obj["api_base"]) as client:
            response = client.post("/upload-img", data=data, files={"file": _file_part(file)})
    except httpx.HTTPError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if response.status_code != 200:
        _fail(response)

    console.print(f"[green]✓[/green] Stored [cyan]{response.json()['key']}[/cyan]")


@main.command(name="list")
@click.pass_context
def list_posts(ctx):
    """
    List posts, newest first.

    Example:
        blogstore list
    """
    try:
        with make_client(ctx.obj["api_base"]) as client:
            response = client.get("/list")
    except httpx.HTTPError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if response.status_code != 200:
        _fail(response)

    posts = response.json().get("posts", [])
    if not posts:
        console.print("[yellow]No posts yet. Publish one with:[/yellow]")
        console.print("[cyan]blogstore publish post.md --title \"...\" --category general[/cyan]")
        return

    table = Table(title=f"Posts ({len(posts)} total)", show_header=True, header_style="bold cyan")
    table.add_column("Slug", style="cyan")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Created", style="dim")
    table.add_column("ID", style="dim")

    for post in posts:
        title = post.get("title", "")
        table.add_row(
            post.get("slug", ""),
            title[:50] + "..." if len(title) > 50 else title,
            post.get("category", ""),
            (post.get("createdAt") or "")[:19],
            post.get("id", ""),
        )

    console.print(table)


@main.command()
@click.argument("id_or_slug")
@click.option("--raw", is_flag=True, help="Print markdown source instead of rendering it")
@click.pass_context
def show(ctx, id_or_slug: str, raw: bool):
    """
    Show a post by id or slug.

    Example:
        blogstore show my-first-post
    """
    try:
        with make_client(ctx.obj["api_base"]) as client:
            response = client.get(f"/post/{id_or_slug}")
    except httpx.HTTPError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if response.status_code != 200:
        _fail(response)

    post = response.json()["post"]
    subtitle = f"{post['category']} · {post['slug']}"
    body = post["markdown"] if raw else Markdown(post["markdown"])
    console.print(Panel(body, title=post["title"], subtitle=subtitle, border_style="cyan"))


@main.command()
@click.argument("post_id")
@click.confirmation_option(prompt="Delete this post and its content?")
@click.pass_context
def delete(ctx, post_id: str):
    """
    Delete a post by id.

    Example:
        blogstore delete V1StGXR8_Z5jdHi6B-myT
    """
    try:
        with make_client(ctx.obj["api_base"]) as client:
            response = client.delete(f"/post/{post_id}")
    except httpx.HTTPError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if response.status_code != 200:
        _fail(response)

    body = response.json()
    console.print(f"[green]✓[/green] {body['message']}")
    for key in body.get("orphanedKeys", []):
        console.print(f"  [yellow]⚠ blob left behind:[/yellow] {key}")


async def _orphans(prune: bool, min_age_minutes: int):
    from datetime import timedelta

    from blogstore.config import get_settings
    from blogstore.core.publisher import PublishContext, PublishService
    from blogstore.database import create_engine_from_settings, create_session_factory, init_db
    from blogstore.repository import PostRepository
    from blogstore.storage.service import StorageService

    settings = get_settings()
    engine = create_engine_from_settings(settings)
    try:
        await init_db(engine)
        service = PublishService(PublishContext.from_settings(
            settings,
            storage=StorageService.from_config(settings.get_storage_config()),
            posts=PostRepository(create_session_factory(engine)),
        ))
        min_age = timedelta(minutes=min_age_minutes)
        if prune:
            return await service.prune_orphans(min_age=min_age)
        return await service.find_orphans(min_age=min_age)
    finally:
        await engine.dispose()


@main.command()
@click.option("--prune", is_flag=True, help="Delete the orphan blobs")
@click.option("--min-age", default=60, show_default=True, help="Ignore blobs younger than this (minutes)")
def orphans(prune: bool, min_age: int):
    """
    Report content blobs no post references.

    Runs against the configured stores directly, not through the API.

    Example:
        blogstore orphans --prune
    """
    entries = asyncio.run(_orphans(prune, min_age))

    if not entries:
        console.print("[green]✓ No orphan blobs[/green]")
        return

    table = Table(
        title=f"{'Pruned' if prune else 'Orphan'} blobs ({len(entries)})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Key", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("SHA-256", style="dim")
    for entry in entries:
        table.add_row(entry.key, str(entry.size_bytes), (entry.sha256 or "")[:12])
    console.print(table)


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", default=8000, show_default=True, help="Port to run server on")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """
    Start the Blogstore API server.

    Example:
        blogstore serve --port 8000
    """
    import uvicorn

    if not os.getenv("UPLOAD_TOKEN"):
        console.print("[yellow]⚠ UPLOAD_TOKEN not set; uploads will be refused[/yellow]")

    console.print(Panel(
        f"[bold green]Starting Blogstore[/bold green]\n\n"
        f"API: [cyan]http://{host}:{port}[/cyan]\n\n"
        f"[dim]Press Ctrl+C to stop[/dim]",
        border_style="green"
    ))
    uvicorn.run("blogstore.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()

"""
Command-line access to the Bucket Console storage API.

Talks to a running API server (see [Console] in settings.ini) through the same
client and connection store a UI would use.

Usage:
    python bucket_console.py --list
    python bucket_console.py --test --provider aws --bucket media --credentials @aws.json
    python bucket_console.py --browse --provider gcp --bucket media --credentials @sa.json --prefix photos/ --all
    python bucket_console.py --stats --provider azure --bucket backups --credentials '{"account_name": "..."}'
    python bucket_console.py --metadata --provider huawei --bucket media --credentials @obs.json --object a.txt
"""

import argparse
import asyncio
import logging
import sys

from utils.env_config import load_console_config
from utils.storage.base import Provider
from utils.storage.client import StorageClient
from utils.storage.connections import connection_store
from utils.storage.errors import StorageRequestError


def _load_credentials(value: str) -> str:
    """Read credentials inline or, with a leading '@', from a file."""
    if value.startswith("@"):
        with open(value[1:], "r") as f:
            return f.read().strip()
    return value


def _fmt_size(nbytes: int) -> str:
    """Format byte count as human-readable size."""
    for unit in ("B", "KB", "MB", "GB"):
        if abs(nbytes) < 1024:
            return f"{nbytes:.1f} {unit}"
        nbytes /= 1024
    return f"{nbytes:.1f} TB"


async def cmd_list(args, client):
    """Print the saved connections of every provider."""
    connection_store.client = client
    await connection_store.fetch_connections()
    if connection_store.error:
        print(connection_store.error)
        sys.exit(1)
    if not connection_store.connections:
        print("No connections configured.")
        return
    for conn in connection_store.connections:
        print(f"[{conn.provider.value:8}] #{conn.id}  {conn.name or '-'}  bucket={conn.bucket}")


async def cmd_test(args, client):
    """Check credentials against a bucket without saving them."""
    connection_store.client = client
    await connection_store.test_connection(args.provider, args.bucket, args.credentials)
    if connection_store.error:
        print(connection_store.error)
        sys.exit(1)
    print(connection_store.notice)


async def cmd_browse(args, client):
    """List one page (or, with --all, every page) under a prefix."""
    pages = 0
    async for page in client.iter_browse(args.provider, args.bucket, args.credentials, args.prefix):
        pages += 1
        for entry in page.entries:
            if entry.is_prefix:
                print(f"  {entry.display or entry.name}/")
            else:
                print(f"  {entry.display or entry.name}  {_fmt_size(entry.size)}  {entry.updated or ''}")
        if not args.all:
            if page.has_more:
                print("\nMore entries available; add --all to list every page.")
            return
    print(f"\n{pages} page(s) listed.")


async def cmd_stats(args, client):
    stats = await client.get_bucket_stats(args.provider, args.bucket, args.credentials)
    print(stats.summary())
    if stats.truncated:
        print("Counting stopped early; the numbers above are a lower bound.")


async def cmd_metadata(args, client):
    meta = await client.get_object_metadata(args.provider, args.bucket, args.credentials, args.object)
    print(f"Content-Type:  {meta.content_type}")
    print(f"Cache-Control: {meta.cache_control}")
    print(f"Size:          {_fmt_size(meta.size)}")
    print(f"Updated:       {meta.updated}")
    print(f"ETag:          {meta.etag}")
    if meta.md5:
        print(f"MD5:           {meta.md5}")
    for key, value in sorted(meta.metadata.items()):
        print(f"  {key}: {value}")


async def cmd_download_url(args, client):
    print(await client.get_download_url(args.provider, args.bucket, args.credentials, args.object))


def main():
    parser = argparse.ArgumentParser(
        description="Bucket Console: browse object storage across providers",
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--list", action="store_true", help="List saved connections of all providers")
    group.add_argument("--test", action="store_true", help="Test bucket credentials")
    group.add_argument("--browse", action="store_true", help="Browse bucket contents")
    group.add_argument("--stats", action="store_true", help="Show bucket statistics")
    group.add_argument("--metadata", action="store_true", help="Show object metadata")
    group.add_argument("--download-url", action="store_true", help="Print a temporary download URL")

    parser.add_argument("--provider", choices=[p.value for p in Provider], help="Storage provider")
    parser.add_argument("--bucket", help="Bucket (container) name")
    parser.add_argument("--credentials", help="Credentials JSON, or @path to a file holding it")
    parser.add_argument("--prefix", default="", help="Key prefix to browse")
    parser.add_argument("--object", help="Object key for --metadata / --download-url")
    parser.add_argument("--all", action="store_true", help="Follow every page when browsing")

    args = parser.parse_args()

    config = load_console_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list:
        command = cmd_list
    else:
        if not args.provider or not args.bucket or args.credentials is None:
            parser.error("bucket commands require --provider, --bucket and --credentials")
        if (args.metadata or args.download_url) and not args.object:
            parser.error("--metadata and --download-url require --object")
        args.credentials = _load_credentials(args.credentials)
        command = {
            "test": cmd_test,
            "browse": cmd_browse,
            "stats": cmd_stats,
            "metadata": cmd_metadata,
            "download_url": cmd_download_url,
        }[next(name for name in ("test", "browse", "stats", "metadata", "download_url") if getattr(args, name))]

    client = StorageClient.from_config(config)
    try:
        asyncio.run(command(args, client))
    except StorageRequestError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from .config import Milvus, load_raw_config
from .exceptions import EmbeddingStoreError
from .store import EmbeddingStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m embedding_store",
        description="Maintenance helpers for the embedding store.",
    )
    subparsers = parser.add_subparsers(
        dest="command", metavar="<command>", required=True
    )

    check_cmd = subparsers.add_parser(
        "check",
        help="Connect to the configured collection and report its status.",
    )
    check_cmd.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config TOML (defaults to ./config.toml when present).",
    )
    check_cmd.add_argument(
        "--namespace",
        "-n",
        type=str,
        default=None,
        help="Namespace to inspect (overrides MILVUS_NAMESPACE).",
    )
    return parser


async def _check(settings: Milvus, namespace: str | None) -> None:
    async with EmbeddingStore.connect(settings=settings, namespace=namespace) as store:
        version = await store.ping()
        exists = await store.has_namespace()
        print(f"server version: {version}")
        print(f"collection:     {settings.MILVUS_COLLECTION}")
        print(f"namespace:      {store.namespace} ({'present' if exists else 'empty'})")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "check":
        if args.config is not None and not args.config.is_file():
            parser.error(f"Config file {args.config} does not exist.")
        settings = Milvus(load_raw_config(args.config))
        try:
            asyncio.run(_check(settings, args.namespace))
        except EmbeddingStoreError as e:
            parser.exit(1, f"check failed: {e}\n")
        return

    parser.print_help()


__all__ = ["main", "build_parser"]

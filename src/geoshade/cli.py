"""Geoshade CLI — inspect/edit runtime configuration and list saved selections."""

import asyncio
import logging
import sys

from geoshade.config import ConfigResolver
from geoshade.overlay.notices import NoticeBoard
from geoshade.storage.client import PersistenceClient

USAGE = """Usage: geoshade <command>
  config                          Show resolved API key / backend URL and their sources
  config set key=<k> backend=<u>  Persist one or both values
  saved                           List saved selections with export links"""


def main() -> None:
    """Run a geoshade command: geoshade [config [set ...] | saved]"""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    args = sys.argv[1:]
    if not args or args[0] in ("-h", "--help"):
        print(USAGE)
        sys.exit(0 if args else 1)

    if args[0] == "config":
        if args[1:2] == ["set"]:
            _config_set(args[2:])
        else:
            _config_show(ConfigResolver())
    elif args[0] == "saved":
        asyncio.run(_list_saved())
    else:
        print(f"Unknown command: {args[0]}\n")
        print(USAGE)
        sys.exit(1)


def _config_show(resolver: ConfigResolver) -> None:
    config = resolver.get()
    key_display = f"{config.api_key[:4]}…" if config.api_key else "(not set)"
    print(f"API key:     {key_display:<40} [{config.sources.get('api_key', 'default')}]")
    print(f"Backend URL: {config.backend_url or '(not set)':<40} [{config.sources.get('backend_url', 'default')}]")
    if not config.map_enabled:
        print("\nMap rendering is disabled until an API key is configured.")
    if not config.save_enabled:
        print("Saving is disabled until a backend URL is configured.")


def _config_set(pairs: list[str]) -> None:
    updates: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or name not in ("key", "backend"):
            print(f"Expected key=<value> or backend=<value>, got: {pair}")
            sys.exit(1)
        updates["api_key" if name == "key" else "backend_url"] = value

    if not updates:
        print(USAGE)
        sys.exit(1)

    resolver = ConfigResolver()
    resolver.set(**updates)
    _config_show(resolver)


async def _list_saved() -> None:
    config = ConfigResolver().get()
    if not config.save_enabled:
        print("No backend URL configured. Run: geoshade config set backend=<url>")
        return

    client = PersistenceClient(config.backend_url, NoticeBoard())
    saved = await client.list_initial()
    if not saved:
        print("No saved selections.")
        return

    print(f"{len(saved)} saved selection(s):\n")
    for s in saved:
        print(f"  {s.name}")
        print(f"    {s.level} • {len(s.items)} items: {', '.join(s.items)}")
        print(f"    Export: {client.export_url(s.id)}")


if __name__ == "__main__":
    main()

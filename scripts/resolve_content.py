#!/usr/bin/env python3
"""
Functional check against a running CMS - prints the resolved HTML of an item.

Runs the ContentService with the full pipeline:
- Media Rewrite (/media/ URLs to the proxy prefix)
- Embed and Link Resolution (CMS lookups)
- External Links and Outline

Usage:
    python scripts/resolve_content.py CONTENT_TYPE SLUG [--host HOSTNAME]

Example:
    python scripts/resolve_content.py conditions type-1-diabetes
    python scripts/resolve_content.py wellness sleep --host niinfomed.com
"""
import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cms_resolver.cms_client import cms_client
from cms_resolver.endpoints import ContentNotFoundError
from cms_resolver.service import content_service


async def resolve(content_type: str, slug: str, host: str | None = None) -> None:
    """Fetch and resolve one item, then print every field."""
    print(f"\n{'=' * 60}")
    print(f"Resolving: {content_type}/{slug} via {cms_client.base_url}")
    print(f"{'=' * 60}\n")

    try:
        await cms_client.start()
        content = await content_service.get_content(content_type, slug, public_hostname=host)

        print(f"Title: {content.item.get('title', 'N/A')}")
        print(f"Fields: {', '.join(content.fields) or 'none'}")
        if content.toc:
            print("Outline:")
            for entry in content.toc:
                print(f"   {'  ' * (entry.level - 2)}- {entry.text} (#{entry.anchor_id})")

        for name, field in content.fields.items():
            flag = " [degraded]" if field.degraded else ""
            print(f"\n{'─' * 60}")
            print(f"{name}{flag}: {', '.join(field.steps_applied) or 'unchanged'}")
            print(f"{'─' * 60}\n")
            print(field.html)

    except ContentNotFoundError as e:
        print(f"Not found, tried {len(e.attempted)} endpoints:")
        for endpoint in e.attempted:
            print(f"   - {endpoint}")
    finally:
        await cms_client.stop()


def main():
    args = sys.argv[1:]
    host = None
    if "--host" in args:
        index = args.index("--host")
        host = args[index + 1] if index + 1 < len(args) else None
        args = args[:index] + args[index + 2:]
    if len(args) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(resolve(args[0], args[1], host=host))


if __name__ == "__main__":
    main()

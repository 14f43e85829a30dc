"""
Acquire a batch of video URLs one at a time.

    python scripts/acquire_urls.py URL [URL ...]
    python scripts/acquire_urls.py --file urls.txt [--no-compress]
"""
import argparse
import asyncio
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from clipvault.core.config import settings
from clipvault.core.db import init_models
from clipvault.core.logging import setup_logging
from clipvault.modules.acquisition.queue import AcquisitionQueue, ItemStatus
from clipvault.modules.acquisition.service import AcquisitionService
from clipvault.modules.acquisition.types import AcquisitionRequest
from clipvault.platform.providers import build_providers

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("urls", nargs="*")
    parser.add_argument("--file", help="text file with one URL per line")
    parser.add_argument("--quality", default="1080")
    parser.add_argument("--no-compress", action="store_true")
    return parser.parse_args(argv)

async def main(argv=None) -> int:
    args = parse_args(argv)
    urls = list(args.urls)
    if args.file:
        with open(args.file, encoding="utf-8") as f:
            urls.extend(line for line in f.read().splitlines() if line.strip() and not line.startswith("#"))
    if not urls:
        print("No URLs given.")
        return 2

    setup_logging(settings)
    providers = build_providers(settings)
    await init_models(providers.engine, settings)

    async def acquire(url: str):
        async with providers.sessionmaker() as session:
            service = AcquisitionService.from_providers(session, providers)
            return await service.acquire(
                AcquisitionRequest(url=url, quality=args.quality, compress=not args.no_compress)
            )

    queue = AcquisitionQueue(acquire)
    queue.submit(urls)
    try:
        items = await queue.run()
    finally:
        await providers.aclose()

    for item in items:
        if item.status == ItemStatus.COMPLETED:
            print(f"  [ok]    {item.url} -> {item.result.file_key} ({item.result.title})")
        else:
            print(f"  [error] {item.url}: {item.error}")
    return 0 if all(i.status == ItemStatus.COMPLETED for i in items) else 1

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

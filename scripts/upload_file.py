#!/usr/bin/env python3
"""
Upload or delete a file in the configured R2 bucket from the command line.

Goes through the same gateway as the API, so keys, metadata and public
URLs are identical to API uploads.

Usage:
    python scripts/upload_file.py path/to/photo.png --folder avatars
    python scripts/upload_file.py --delete avatars/1714564800000_k3j9x0a2b1c.png

Requires:
    - .env file with R2 credentials and R2_PUBLIC_URL
"""

import asyncio
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.api.dependencies import get_bucket, get_gateway
from src.config.settings import get_settings
from src.core.storage.models import InMemoryFile


async def upload(filepath: Path, folder: str) -> bool:
    settings = get_settings()
    gateway = get_gateway(settings, get_bucket(settings))

    file = InMemoryFile(filename=filepath.name, data=filepath.read_bytes())
    print(f"Uploading {filepath} ({file.size} bytes) to folder '{folder}'")

    result = await gateway.put(file, folder=folder)
    if not result.success:
        print(f"ERROR: {result.error}")
        return False

    print(f"[OK] Key: {result.key}")
    print(f"[OK] URL: {result.url}")
    return True


async def delete(key: str) -> bool:
    settings = get_settings()
    gateway = get_gateway(settings, get_bucket(settings))

    result = await gateway.delete(key)
    if not result.success:
        print(f"ERROR: {result.error}")
        return False

    print(f"[OK] Deleted: {key}")
    return True


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Upload a file to R2 and print its public URL')
    parser.add_argument('file', nargs='?', help='Local file to upload')
    parser.add_argument('--folder', default=None, help='Key prefix (default: DEFAULT_FOLDER setting)')
    parser.add_argument('--delete', metavar='KEY', help='Delete this key instead of uploading')

    args = parser.parse_args()

    if args.delete:
        success = asyncio.run(delete(args.delete))
        sys.exit(0 if success else 1)

    if not args.file:
        parser.error("a file to upload is required unless --delete is given")

    filepath = Path(args.file)
    if not filepath.is_file():
        print(f"ERROR: Cannot find {args.file}")
        sys.exit(1)

    folder = args.folder or get_settings().default_folder
    success = asyncio.run(upload(filepath, folder))

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
"""
Upload images from the command line through the presigned upload API.

Usage:
    python upload_images.py --api https://uploads.example.com cat.png dog.jpg

    # Password from the environment instead of a prompt:
    UPLOAD_PASSWORD=secret python upload_images.py --api http://localhost:8000 *.png

    # Several files in flight at once:
    python upload_images.py --api http://localhost:8000 --concurrency 4 photos/*.jpg
"""
import argparse
import asyncio
import getpass
import os
import sys

from app.client import FileBlob, Uploader
from app.errors import UploaderError
from app.schemas.upload import BatchProgress


def print_progress(progress: BatchProgress):
    if progress.is_uploading:
        print(f"\r  Uploading... {progress.percent_complete:3d}%", end="", file=sys.stderr, flush=True)


async def run(args) -> int:
    try:
        files = [FileBlob.from_path(path) for path in args.files]
    except OSError as e:
        print(f"ERROR reading file: {e}")
        return 1

    password = os.environ.get('UPLOAD_PASSWORD') or getpass.getpass("Password: ")

    async with Uploader(
        args.api,
        max_concurrency=args.concurrency,
        transfer_timeout=args.timeout,
        on_progress=print_progress,
    ) as uploader:
        if not await uploader.login(password):
            print(f"Login failed: {uploader.session.authorization.error}")
            return 1

        try:
            uploaded = await uploader.upload(files)
        except UploaderError as e:
            print(file=sys.stderr)
            print(f"Upload failed: {e.message}")
            return 1

    print(file=sys.stderr)
    for f in uploaded:
        print(f"{f.name}\t{f.url}")
    return 0


def main():
    parser = argparse.ArgumentParser(description='Upload images straight to R2 via presigned URLs')
    parser.add_argument('files', nargs='+', help='Image files to upload, in order')
    parser.add_argument('--api', default=os.environ.get('UPLOAD_API_URL', 'http://localhost:8000'),
                        help='Base URL of the upload API')
    parser.add_argument('--concurrency', type=int, default=1,
                        help='Files uploaded at once (default: 1, sequential)')
    parser.add_argument('--timeout', type=float, default=120.0,
                        help='Timeout per file transfer in seconds')
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args)))


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
"""
Script to list files in the Cloudflare R2 bucket.

Useful after a failed batch: files uploaded before the failure are still
in the bucket even though the batch reported no result.

Usage:
    # From inside the Docker container:
    docker exec -it image-uploader-api python list_r2_files.py

    # Only keys under a prefix:
    python list_r2_files.py --prefix 1700000000000-

    # Or locally with environment variables:
    R2_ACCOUNT_ID=xxx R2_ACCESS_KEY_ID=xxx R2_SECRET_ACCESS_KEY=xxx \
    R2_BUCKET_NAME=xxx PUBLIC_IMAGE_DOMAIN=https://img.example.com python list_r2_files.py
"""
import argparse
import sys

from botocore.exceptions import ClientError

from app.config import settings
from app.errors import ConfigurationError
from app.storage.r2_client import R2Client


def main():
    parser = argparse.ArgumentParser(description='List files in the Cloudflare R2 bucket')
    parser.add_argument('--prefix', default='', help='Only list keys starting with this prefix')
    parser.add_argument('--urls', action='store_true', help='Print public URLs instead of keys')
    args = parser.parse_args()

    client = R2Client(settings)

    try:
        objects = client.list_objects(args.prefix)
    except ConfigurationError:
        print("ERROR: Missing R2 configuration!")
        print("Required environment variables:")
        print("  - R2_ACCOUNT_ID (or R2_ENDPOINT)")
        print("  - R2_ACCESS_KEY_ID")
        print("  - R2_SECRET_ACCESS_KEY")
        print("  - R2_BUCKET_NAME")
        print("  - PUBLIC_IMAGE_DOMAIN")
        sys.exit(1)
    except ClientError as e:
        print(f"ERROR listing objects: {e}")
        sys.exit(1)

    if not objects:
        print(f"No objects in bucket '{client.bucket}'.")
        return

    total_bytes = 0
    for obj in objects:
        total_bytes += obj.get('Size', 0)
        if args.urls:
            print(client.public_url(obj['Key']))
        else:
            size_kb = obj.get('Size', 0) / 1024
            print(f"{obj['Key']}\t{size_kb:.1f} KB\t{obj.get('LastModified')}")

    print(f"\n{len(objects)} objects, {total_bytes / 1024 / 1024:.2f} MB total", file=sys.stderr)


if __name__ == '__main__':
    main()

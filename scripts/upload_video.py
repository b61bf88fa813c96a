#!/usr/bin/env python3
"""
Video Manager • CLI Uploader
============================

Logs in, then uploads a local video into a folder, either through the API
(multipart `POST /upload`) or straight to the bucket via a presigned PUT.

Examples
--------
1) Proxied upload:
    python scripts/upload_video.py --api http://localhost:3001/api \
      --username admin --password secret --folder "Trips/2024" ./clip.mp4

2) Direct-to-bucket upload with an existing token:
    python scripts/upload_video.py --api http://localhost:3001/api \
      --token "$TOKEN" --presign ./clip.mp4
"""

import argparse
import mimetypes
import os
import sys
from typing import Dict

import requests


def login(api: str, username: str, password: str) -> str:
    r = requests.post(f"{api}/auth/login", json={"username": username, "password": password}, timeout=30)
    r.raise_for_status()
    return r.json()["token"]


def upload_multipart(api: str, headers: Dict[str, str], path: str, folder: str, ctype: str) -> Dict:
    with open(path, "rb") as f:
        files = {"video": (os.path.basename(path), f, ctype)}
        r = requests.post(f"{api}/upload", headers=headers, files=files, data={"folder": folder}, timeout=600)
    r.raise_for_status()
    return r.json()


def upload_presigned(api: str, headers: Dict[str, str], path: str, folder: str, ctype: str) -> Dict:
    body = {"folder": folder, "file_name": os.path.basename(path), "content_type": ctype}
    r = requests.post(f"{api}/videos/presign", headers=headers, json=body, timeout=30)
    r.raise_for_status()
    slot = r.json()
    with open(path, "rb") as f:
        put = requests.put(slot["upload_url"], data=f, headers={"Content-Type": ctype}, timeout=600)
    if put.status_code not in (200, 201):
        print(f"Upload failed: {put.status_code} {put.text}", file=sys.stderr)
        sys.exit(1)
    return {"key": slot["key"], "url": slot["url"]}


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("file", help="Path to the video file")
    ap.add_argument("--api", default="http://localhost:3001/api", help="API base")
    ap.add_argument("--folder", default="Uncategorized", help="Target folder path")
    ap.add_argument("--token", help="Existing bearer token")
    ap.add_argument("--username", help="Login username (when no --token)")
    ap.add_argument("--password", help="Login password (when no --token)")
    ap.add_argument("--presign", action="store_true", help="Upload directly to the bucket")
    args = ap.parse_args()

    if not os.path.isfile(args.file):
        print(f"Not a file: {args.file}", file=sys.stderr)
        sys.exit(2)

    api = args.api.rstrip("/")
    token = args.token
    if not token:
        if not (args.username and args.password):
            print("Provide --token or --username + --password", file=sys.stderr)
            sys.exit(2)
        token = login(api, args.username, args.password)
    headers = {"Authorization": f"Bearer {token}"}

    ctype = mimetypes.guess_type(args.file)[0] or "application/octet-stream"
    print(f"Uploading {args.file} ({os.path.getsize(args.file)} bytes) to '{args.folder}'...")
    uploader = upload_presigned if args.presign else upload_multipart
    result = uploader(api, headers, args.file, args.folder, ctype)
    print(f"Upload complete: {result['key']}")
    print(result["url"])


if __name__ == "__main__":
    main()

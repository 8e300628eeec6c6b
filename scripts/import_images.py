#!/usr/bin/env python3
"""
Download a list of images and optionally upload them to the image server.

Each non-empty line of the list file is a path whose last segment is the image
name, e.g. ``/abc123.jpg``. Images already present in the target directory are
skipped.

Example:
    python scripts/import_images.py images.txt \
        --source-base-url https://image.tmdb.org/t/p/original \
        --target-dir storage/uploads \
        --upload-url http://127.0.0.1:8000 \
        --secret default-secret
"""

from __future__ import annotations

import argparse
import hashlib
import hmac
import json
import mimetypes
import sys
import time
import urllib.error
import urllib.parse
import urllib.request
import uuid
from pathlib import Path
from typing import Any, Optional


def read_image_names(list_file: Path) -> list[str]:
    names: list[str] = []
    for line in list_file.read_text(encoding="utf-8").split("\n"):
        name = line.replace("\r", "").strip().rsplit("/", 1)[-1]
        if name:
            names.append(name)
    return names


def download(url: str, target: Path, timeout: int = 60) -> bool:
    temp_path = target.with_name(target.name + ".part")
    try:
        with urllib.request.urlopen(url, timeout=timeout) as resp:
            temp_path.write_bytes(resp.read())
        temp_path.replace(target)
    except (urllib.error.URLError, OSError) as exc:
        print(f"[download] failed {url}: {exc}", file=sys.stderr)
        temp_path.unlink(missing_ok=True)
        return False
    return True


def download_all(names: list[str], source_base_url: str, target_dir: Path) -> list[Path]:
    target_dir.mkdir(parents=True, exist_ok=True)
    downloaded: list[Path] = []
    for name in names:
        target = target_dir / name
        if target.exists():
            print(f"[download] {name} already exists, skipping")
            continue
        url = f"{source_base_url.rstrip('/')}/{urllib.parse.quote(name)}"
        print(f"[download] {url}")
        if download(url, target):
            downloaded.append(target)
    return downloaded


def presigned_query(key: str, secret: str, expires_in: int) -> dict[str, str]:
    expires = str(int(time.time()) + expires_in)
    signature = hmac.new(secret.encode("utf-8"), f"{key}:{expires}".encode("utf-8"), hashlib.sha256).hexdigest()
    return {"key": key, "expires": expires, "signature": signature}


def http_post_multipart(url: str,
                        files: list[tuple[str, str, bytes, str]],
                        timeout: int = 120) -> tuple[int, bytes]:
    boundary = "----ImageImportBoundary" + uuid.uuid4().hex
    body = bytearray()

    def add_line(line: str) -> None:
        body.extend(line.encode("utf-8"))

    for name, filename, content, content_type in files:
        add_line(f"--{boundary}\r\n")
        add_line(
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n')
        add_line(f"Content-Type: {content_type}\r\n\r\n")
        body.extend(content)
        body.extend(b"\r\n")

    add_line(f"--{boundary}--\r\n")

    req_headers = {
        "Content-Type": f"multipart/form-data; boundary={boundary}",
    }
    req = urllib.request.Request(url, data=bytes(body), headers=req_headers, method="POST")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status, resp.read()
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read()


def upload_images(server: str, key: str, secret: str, expires_in: int, paths: list[Path]) -> dict[str, Any]:
    query = urllib.parse.urlencode(presigned_query(key, secret, expires_in))
    url = f"{server.rstrip('/')}/upload?{query}"
    files = [
        ("images", path.name, path.read_bytes(), mimetypes.guess_type(path.name)[0] or "application/octet-stream")
        for path in paths
    ]
    print(f"[api] uploading {len(files)} image(s) to {server.rstrip('/')}/upload")
    status, body = http_post_multipart(url, files)
    if status != 200:
        raise SystemExit(f"upload failed: {status} {body.decode(errors='ignore')}")
    return json.loads(body.decode("utf-8"))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Download images and upload them to the image server")
    parser.add_argument("list_file", type=Path, help="File with one image path per line")
    parser.add_argument("--source-base-url", required=True, help="Base URL images are downloaded from")
    parser.add_argument("--target-dir", type=Path, default=Path("storage/uploads"), help="Download directory")
    parser.add_argument("--upload-url", help="Image server base URL; enables upload after download")
    parser.add_argument("--secret", help="Presigned URL secret shared with the server")
    parser.add_argument("--key", default="import", help="Presigned URL key")
    parser.add_argument("--expires-in", type=int, default=300, help="Presigned URL validity in seconds")
    args = parser.parse_args(argv)

    if not args.list_file.exists():
        raise SystemExit(f"list file not found: {args.list_file}")
    if args.upload_url and not args.secret:
        raise SystemExit("--secret is required together with --upload-url")

    names = read_image_names(args.list_file)
    downloaded = download_all(names, args.source_base_url, args.target_dir)
    print(f"[done] downloaded {len(downloaded)} of {len(names)} image(s)")

    if args.upload_url and downloaded:
        upload_resp = upload_images(args.upload_url, args.key, args.secret, args.expires_in, downloaded)
        print("[done] upload succeeded")
        print(json.dumps(upload_resp, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit("aborted by user")

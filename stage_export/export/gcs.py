from __future__ import annotations

from google.cloud import storage


def gs_uri(bucket: str, name: str) -> str:
    return f"gs://{bucket}/{name}"


def object_name(prefix: str, file_name: str) -> str:
    """Destination object name, e.g. "processed/" + "daily/prices.csv"."""
    return f"{prefix}{file_name.lstrip('/')}"


def upload_file(
    client: storage.Client,
    bucket: str,
    name: str,
    path: str,
    *,
    content_type: str = "text/csv",
) -> str:
    b = client.bucket(bucket)
    blob = b.blob(name)
    blob.upload_from_filename(path, content_type=content_type)
    return gs_uri(bucket, name)

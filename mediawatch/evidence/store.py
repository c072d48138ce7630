"""Evidence bundles in S3-compatible object storage.

Layout under the bucket::

    evidence/<policy>/<article_id>/raw.html.gz
    evidence/<policy>/<article_id>/extracted.txt.gz
    evidence/<policy>/<article_id>/capture_meta.json
"""

import asyncio
import json
import logging
from functools import partial
from typing import Any, Dict, Optional, Union
from uuid import UUID

import boto3
import pendulum
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field

from ..errors import EvidenceNotConfigured, EvidenceNotFound, StorageFailed
from ..ingestion.canonical import compress_gzip, decompress_gzip, hash_bytes
from ..models import EvidencePolicy

logger = logging.getLogger(__name__)

RAW_SUFFIX = "raw.html.gz"
EXTRACTED_SUFFIX = "extracted.txt.gz"
META_SUFFIX = "capture_meta.json"
SUFFIXES = (RAW_SUFFIX, EXTRACTED_SUFFIX, META_SUFFIX)

# Order in which GetEvidence tries the policy prefixes.
POLICY_ORDER = (
    EvidencePolicy.RET_3M,
    EvidencePolicy.RET_6M,
    EvidencePolicy.RET_12M,
    EvidencePolicy.KEEP,
)

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


class CaptureMeta(BaseModel):
    """capture_meta.json."""

    article_id: str = Field(..., description="Article UUID")
    captured_at: str = Field(..., description="RFC3339 UTC capture time")
    raw_hash_sha256: str = Field(..., description="SHA-256 of the uncompressed raw HTML")
    extract_hash_sha256: str = Field(..., description="SHA-256 of the uncompressed extract")
    evidence_policy: EvidencePolicy = Field(..., description="Retention policy")


class Evidence(BaseModel):
    """A complete evidence triple."""

    raw: bytes
    extracted: bytes
    meta: CaptureMeta


def evidence_key(policy: EvidencePolicy, article_id: Union[str, UUID], suffix: str) -> str:
    return f"evidence/{EvidencePolicy(policy).value}/{article_id}/{suffix}"


def create_s3_client(storage_config: Dict[str, Any]):
    """boto3 S3 client with path-style addressing, or None when no endpoint is set."""
    if not storage_config.get("endpoint"):
        return None

    client_kwargs = {
        "service_name": "s3",
        "endpoint_url": storage_config["endpoint"],
        "region_name": storage_config.get("region") or "us-east-1",
        "config": BotoConfig(s3={"addressing_style": "path"}),
    }
    if storage_config.get("access_key") and storage_config.get("secret_key"):
        client_kwargs["aws_access_key_id"] = storage_config["access_key"]
        client_kwargs["aws_secret_access_key"] = storage_config["secret_key"]

    return boto3.client(**client_kwargs)


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class EvidenceStore:
    """
    Store, fetch and delete evidence bundles.

    Without a client the store runs in not-configured mode: ``store`` and
    ``delete`` succeed without doing anything and ``get`` raises
    EvidenceNotConfigured.
    """

    def __init__(self, client: Any = None, bucket: str = "mediawatch-evidence") -> None:
        self.client = client
        self.bucket = bucket

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def _call(self, method: str, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(getattr(self.client, method), Bucket=self.bucket, **kwargs))

    def _download(self, key: str) -> bytes:
        """get_object plus the body read; the StreamingBody read blocks on the socket."""
        return self.client.get_object(Bucket=self.bucket, Key=key)["Body"].read()

    async def _put(self, key: str, body: bytes, content_type: str, encoding: Optional[str] = None) -> None:
        kwargs = {"Key": key, "Body": body, "ContentType": content_type}
        if encoding:
            kwargs["ContentEncoding"] = encoding
        try:
            await self._call("put_object", **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise StorageFailed(f"put {key}: {e}")

    async def _get(self, key: str) -> Optional[bytes]:
        try:
            return await asyncio.get_running_loop().run_in_executor(None, self._download, key)
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise StorageFailed(f"get {key}: {e}")
        except BotoCoreError as e:
            raise StorageFailed(f"get {key}: {e}")

    async def store(
        self,
        article_id: Union[str, UUID],
        policy: EvidencePolicy,
        raw: bytes,
        extracted: bytes,
        meta: Optional[CaptureMeta] = None,
    ) -> Optional[CaptureMeta]:
        """
        Upload the gzipped payloads and the capture metadata.

        Returns the metadata written, or None in not-configured mode.
        """
        if not self.configured:
            return None

        policy = EvidencePolicy(policy)
        if meta is None:
            meta = CaptureMeta(
                article_id=str(article_id),
                captured_at=pendulum.now("UTC").to_iso8601_string(),
                raw_hash_sha256=hash_bytes(raw),
                extract_hash_sha256=hash_bytes(extracted),
                evidence_policy=policy,
            )

        await self._put(
            evidence_key(policy, article_id, RAW_SUFFIX),
            compress_gzip(raw),
            "text/html",
            encoding="gzip",
        )
        await self._put(
            evidence_key(policy, article_id, EXTRACTED_SUFFIX),
            compress_gzip(extracted),
            "text/plain",
            encoding="gzip",
        )
        await self._put(
            evidence_key(policy, article_id, META_SUFFIX),
            meta.model_dump_json(indent=2).encode("utf-8"),
            "application/json",
        )
        logger.debug("Stored evidence for %s under %s", article_id, policy.value)
        return meta

    async def delete(self, article_id: Union[str, UUID]) -> None:
        """Delete every key the article could have under any policy."""
        if not self.configured:
            return

        for policy in POLICY_ORDER:
            for suffix in SUFFIXES:
                key = evidence_key(policy, article_id, suffix)
                try:
                    await self._call("delete_object", Key=key)
                except ClientError as e:
                    if not _is_not_found(e):
                        logger.warning("Failed to delete %s: %s", key, e)
                except BotoCoreError as e:
                    logger.warning("Failed to delete %s: %s", key, e)

    async def get(self, article_id: Union[str, UUID]) -> Evidence:
        """
        First complete triple found, probing policies in POLICY_ORDER.

        Raises:
            EvidenceNotConfigured: no object storage configured
            EvidenceNotFound: no policy prefix holds all three objects
        """
        if not self.configured:
            raise EvidenceNotConfigured("object storage is not configured")

        for policy in POLICY_ORDER:
            raw = await self._get(evidence_key(policy, article_id, RAW_SUFFIX))
            if raw is None:
                continue
            extracted = await self._get(evidence_key(policy, article_id, EXTRACTED_SUFFIX))
            meta = await self._get(evidence_key(policy, article_id, META_SUFFIX))
            if extracted is None or meta is None:
                continue
            return Evidence(
                raw=decompress_gzip(raw),
                extracted=decompress_gzip(extracted),
                meta=CaptureMeta(**json.loads(meta)),
            )

        raise EvidenceNotFound(str(article_id))

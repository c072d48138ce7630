"""Evidence bundles in object storage."""

from .store import CaptureMeta, Evidence, EvidenceStore, create_s3_client, evidence_key

__all__ = ["CaptureMeta", "Evidence", "EvidenceStore", "create_s3_client", "evidence_key"]

"""Deletion of evidence bundles whose retention has elapsed."""

import logging
from typing import Optional

import psycopg

from ..db import ArticleStore
from ..errors import MediaWatchError
from ..evidence import EvidenceStore
from .deadline import Deadline

logger = logging.getLogger(__name__)


async def run_evidence_cleanup(
    articles: ArticleStore,
    evidence: EvidenceStore,
    limit: int = 500,
    deadline: Optional[Deadline] = None,
) -> int:
    """
    Delete expired evidence and clear the expiry on each article.

    Articles stay in the database; only their bundle goes. Returns the
    number of articles cleaned.
    """
    if not evidence.configured:
        logger.info("Object storage not configured, skipping evidence cleanup")
        return 0

    expired = await articles.list_expired_evidence(limit)
    cleaned = 0
    for article in expired:
        if deadline is not None and deadline.expired:
            logger.warning("Evidence cleanup stopped by deadline after %d articles", cleaned)
            break
        try:
            await evidence.delete(article.id)
            await articles.clear_evidence_expiry(article.id)
        except (MediaWatchError, psycopg.Error) as e:
            logger.error("Evidence cleanup failed for %s: %s", article.id, e)
            continue
        cleaned += 1

    logger.info("Cleaned evidence for %d of %d expired articles", cleaned, len(expired))
    return cleaned

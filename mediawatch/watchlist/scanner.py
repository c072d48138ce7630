"""Watchlist scan: run every agent for every active organization."""

import asyncio
import logging
import time
from typing import List, Optional

import httpx
import psycopg
from pydantic import BaseModel

from ..config.models import RegionConfig, WatchlistConfig
from ..db import MentionStore, OrgStore
from ..errors import MediaWatchError, log_level
from ..ingestion import hash_url
from ..models import Mention, WatchlistOrg
from ..pipeline.deadline import Deadline
from .agents import Agent
from .sentiment import SentimentDrafter
from .spam import SpamFilter

logger = logging.getLogger(__name__)


def build_queries(org: WatchlistOrg, region: str, max_keywords: int = 4) -> List[str]:
    """``"<name> <region>"`` followed by up to ``max_keywords`` distinct keyword queries."""
    queries = [f"{org.name} {region}"]
    seen = {org.name.strip().lower()}
    for keyword in org.keywords:
        if len(queries) > max_keywords:
            break
        normalized = keyword.strip().lower()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        queries.append(f"{keyword.strip()} {region}")
    return queries


class ScanStats(BaseModel):
    orgs: int = 0
    new_mentions: int = 0
    spam: int = 0
    duplicates: int = 0
    agent_failures: int = 0
    classified: int = 0
    deadline_expired: bool = False
    duration: float = 0.0


class WatchlistScanner:
    """
    Scans active orgs one after another.

    Agents run in their fixed order. Each agent stops for an org after
    ``max_results_per_agent`` new mentions, and each agent call is bounded
    by ``agent_timeout``. A sentiment pass over new mentions closes the scan.
    """

    def __init__(
        self,
        orgs: OrgStore,
        mentions: MentionStore,
        agents: List[Agent],
        spam_filter: SpamFilter,
        drafter: SentimentDrafter,
        settings: WatchlistConfig,
        region: RegionConfig,
    ) -> None:
        self.orgs = orgs
        self.mentions = mentions
        self.agents = agents
        self.spam_filter = spam_filter
        self.drafter = drafter
        self.settings = settings
        self.region = region

    async def run(self, deadline: Optional[Deadline] = None) -> ScanStats:
        deadline = deadline or Deadline(self.settings.scan_timeout)
        stats = ScanStats()
        started = time.monotonic()

        orgs = await self.orgs.list_active()
        stats.orgs = len(orgs)
        if not orgs:
            logger.info("No active organizations to scan")
            return stats

        for org in orgs:
            if deadline.expired:
                stats.deadline_expired = True
                break
            found = await self.scan_org(org, deadline, stats)
            stats.new_mentions += found

        stats.classified = await self.drafter.run(deadline)
        stats.duration = time.monotonic() - started
        logger.info(
            "Watchlist scan complete: %d orgs, %d new mentions in %.1fs",
            stats.orgs,
            stats.new_mentions,
            stats.duration,
        )
        return stats

    async def scan_org(self, org: WatchlistOrg, deadline: Deadline, stats: ScanStats) -> int:
        logger.info("Scanning %s", org.name)
        queries = build_queries(org, self.region.name, self.settings.max_keyword_queries)
        found = 0
        for agent in self.agents:
            if deadline.expired:
                break
            if agent.enabled(org):
                found += await self.run_agent(agent, org, queries, deadline, stats)
        logger.info("%s: %d new mentions", org.name, found)
        return found

    async def run_agent(
        self,
        agent: Agent,
        org: WatchlistOrg,
        queries: List[str],
        deadline: Deadline,
        stats: ScanStats,
    ) -> int:
        accepted = 0
        cap = self.settings.max_results_per_agent
        keywords = agent.spam_keywords(org)

        for target in agent.targets(org, queries):
            if accepted >= cap or deadline.expired:
                break
            try:
                results = await deadline.run(agent.fetch(org, target), self.settings.agent_timeout)
            except asyncio.TimeoutError:
                logger.warning("%s: %s timed out on %r", org.name, agent.name, target)
                stats.agent_failures += 1
                continue
            except (MediaWatchError, httpx.HTTPError, psycopg.Error) as e:
                level = log_level(e) if isinstance(e, MediaWatchError) else logging.WARNING
                logger.log(level, "%s: %s failed on %r: %s", org.name, agent.name, target, e)
                stats.agent_failures += 1
                continue

            for result in results:
                if accepted >= cap:
                    break
                if not result.url:
                    continue
                if self.spam_filter.is_spam(result.url, result.title, result.snippet, keywords):
                    stats.spam += 1
                    continue

                mention = Mention(
                    org_id=org.id,
                    source_type=agent.source_type,
                    title=result.title,
                    url=result.url,
                    url_hash=hash_url(result.url),
                    snippet=result.snippet,
                )
                try:
                    created = await self.mentions.create(mention)
                except psycopg.Error as e:
                    logger.error("Failed to store mention %s: %s", result.url, e)
                    continue
                if created:
                    accepted += 1
                else:
                    stats.duplicates += 1

        if accepted:
            logger.info("%s: %s found %d new mentions", org.name, agent.name, accepted)
        return accepted

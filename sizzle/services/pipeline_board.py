"""
Pipeline board — cached view of the GoHighLevel pipeline plus optimistic stage moves.

PipelineCache is created per app and injected where needed; it is not a
module-level singleton. Stage moves are applied to the cache first and rolled
back if GoHighLevel rejects the update.
"""
import logging
import math
import time
from typing import Any, Callable, Dict, List, Optional

from sizzle.config import PIPELINE_CACHE_SECONDS
from sizzle.exceptions import GHLError, ValidationError
from sizzle.services.ghl import GHLClient, Opportunity, Pipeline

logger = logging.getLogger('services.pipeline_board')


class PipelineCache:
    """
    The first pipeline of the location and its opportunities.

    `validity_token` is the Last-Modified value of the last full fetch; it is
    sent back as If-Modified-Since so an unchanged pipeline costs a 304.
    Local edits clear it so the next refresh always re-downloads.
    """

    def __init__(self, client: GHLClient, ttl_seconds: float = PIPELINE_CACHE_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.pipeline: Optional[Pipeline] = None
        self.opportunities: List[Opportunity] = []
        self.fetched_at: Optional[float] = None
        self.validity_token: Optional[str] = None

    def is_fresh(self) -> bool:
        if self.fetched_at is None or not self.opportunities:
            return False
        return (self.clock() - self.fetched_at) < self.ttl_seconds

    def refresh(self, force: bool = False) -> 'PipelineCache':
        """Re-fetch unless the cached data is still inside the freshness window."""
        if not force and self.is_fresh():
            return self

        pipelines = self.client.get_pipelines()
        if not pipelines:
            raise GHLError('No pipelines found')
        pipeline = pipelines[0]

        page = self.client.get_opportunities(pipeline.id, last_modified=self.validity_token)
        now = self.clock()
        if page.not_modified:
            logger.debug("Pipeline %s not modified", pipeline.id)
            self.pipeline = self.pipeline or pipeline
            self.fetched_at = now
            return self

        self.pipeline = pipeline
        self.opportunities = list(page.opportunities)
        self.fetched_at = now
        self.validity_token = page.last_modified
        logger.info("Pipeline %s refreshed: %d opportunities", pipeline.id, len(self.opportunities))
        return self

    def get(self, opportunity_id: str) -> Optional[Opportunity]:
        for opportunity in self.opportunities:
            if opportunity.id == opportunity_id:
                return opportunity
        return None

    def apply_local(self, opportunity_id: str, **changes) -> Optional[Opportunity]:
        opportunity = self.get(opportunity_id)
        if opportunity is None:
            return None
        for name, value in changes.items():
            setattr(opportunity, name, value)
        self.validity_token = None
        return opportunity

    def add_local(self, opportunity: Opportunity) -> None:
        self.opportunities.insert(0, opportunity)
        self.validity_token = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pipeline': self.pipeline.to_dict() if self.pipeline else None,
            'opportunities': [o.to_dict() for o in self.opportunities],
            'stage_totals': stage_totals(self),
        }


class StageMove:
    """Command: move one opportunity to another stage, optimistic with rollback."""

    def __init__(self, cache: PipelineCache, opportunity_id: str, stage_id: str):
        self.cache = cache
        self.opportunity_id = opportunity_id
        self.stage_id = stage_id
        self.previous_stage_id: Optional[str] = None

    def apply(self) -> Opportunity:
        opportunity = self.cache.get(self.opportunity_id)
        if opportunity is None:
            raise ValidationError(f"Opportunity '{self.opportunity_id}' is not on the board")
        self.previous_stage_id = opportunity.stage_id
        if self.previous_stage_id != self.stage_id:
            self.cache.apply_local(self.opportunity_id, stage_id=self.stage_id)
        return opportunity

    def rollback(self) -> None:
        if self.previous_stage_id is not None:
            self.cache.apply_local(self.opportunity_id, stage_id=self.previous_stage_id)

    def execute(self) -> Opportunity:
        opportunity = self.apply()
        if self.previous_stage_id == self.stage_id:
            return opportunity

        try:
            self.cache.client.update_opportunity(
                self.opportunity_id,
                stage_id=self.stage_id,
                pipeline_id=self.cache.pipeline.id if self.cache.pipeline else '',
            )
        except Exception:
            logger.error(
                "Failed to move opportunity %s to %s — rolling back to %s",
                self.opportunity_id, self.stage_id, self.previous_stage_id, exc_info=True,
            )
            self.rollback()
            raise

        logger.info("Moved opportunity %s: %s → %s", self.opportunity_id, self.previous_stage_id, self.stage_id)
        return opportunity


def move_opportunity(cache: PipelineCache, opportunity_id: str, stage_id: str) -> Opportunity:
    """Drag-and-drop handler: refresh if stale, then run a StageMove."""
    cache.refresh()
    if cache.pipeline and stage_id not in {s.id for s in cache.pipeline.stages}:
        raise ValidationError(f"Unknown stage '{stage_id}'")
    return StageMove(cache, opportunity_id, stage_id).execute()


def create_opportunity(cache: PipelineCache, title: str, value, notes: str = '') -> Opportunity:
    """New lead form: validate, create in the pipeline's first stage, add to the board."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError('Please enter a valid value')
    if not math.isfinite(value) or value <= 0:
        raise ValidationError('Please enter a valid value')
    if not title or not title.strip():
        raise ValidationError('Please enter a title')

    cache.refresh()
    if not cache.pipeline or not cache.pipeline.stages:
        raise ValidationError('No stages found in pipeline')
    first_stage = cache.pipeline.stages[0]

    created = cache.client.create_opportunity(
        title=title.strip(),
        value=value,
        notes=notes or '',
        pipeline_id=cache.pipeline.id,
        stage_id=first_stage.id,
    )
    if created is None:
        raise GHLError('Opportunity was not created')
    cache.add_local(created)
    logger.info("Created opportunity %s in stage %s", created.id, first_stage.id)
    return created


def stage_totals(cache: PipelineCache) -> Dict[str, float]:
    """Opportunity value per stage id, every stage of the pipeline present."""
    totals: Dict[str, float] = {}
    if cache.pipeline:
        totals = {stage.id: 0.0 for stage in cache.pipeline.stages}
    for opportunity in cache.opportunities:
        totals[opportunity.stage_id] = totals.get(opportunity.stage_id, 0.0) + (opportunity.value or 0)
    return totals

"""
Lead-Gen Pipeline Orchestrator

Runs one lead-gen job: PENDING -> RUNNING -> SUCCESS | FAILED.

Two branches, picked once per run from the job's provider flags:
- Agent mode (default unless providers.agenticAI is False): delegate the
  whole job to the autonomous agent.
- Classic mode: SERP search -> company enrichment -> ICP scoring. Each
  stage returns a StageOutcome; a failed stage is logged to the job and
  the next stage still runs.

Job log and counters are committed after every stage. Counters only ever
grow; re-running a job adds to what earlier runs recorded.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from leadgen_pipeline.config import settings
from leadgen_pipeline.exceptions import JobAlreadyRunningError, JobNotFoundError
from leadgen_pipeline.icp_engine import blend_scores, calculate_company_icp_score
from leadgen_pipeline.models import LeadGenJob, LeadPool
from leadgen_pipeline.policy import DEFAULT_POLICY, ScoringPolicy
from leadgen_pipeline.repositories import CandidateRepository, LeadGenJobRepository, LeadPoolRepository
from leadgen_pipeline.schemas.candidate import CompanyData
from leadgen_pipeline.schemas.icp import ICPConfig
from leadgen_pipeline.schemas.job import JobCounters, JobProviders, JobStatus
from leadgen_pipeline.services.providers import (
    AgentRunResult,
    AutonomousAgent,
    EnrichmentOutcome,
    EnrichmentProvider,
    SerpSearchProvider,
    SerpSearchResult,
)

logger = logging.getLogger(__name__)


# ============================================================================
# STAGE OUTCOMES
# ============================================================================

class StageStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass
class StageOutcome:
    """Result of one classic-pipeline stage."""
    stage: str
    status: StageStatus
    counters: JobCounters = field(default_factory=JobCounters)
    reason: Optional[str] = None  # failure message or skip reason
    message: Optional[str] = None  # job-log line on success
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def succeeded(cls, stage: str, counters: JobCounters, message: str, **details) -> "StageOutcome":
        return cls(stage, StageStatus.SUCCEEDED, counters=counters, message=message, details=details)

    @classmethod
    def failed(cls, stage: str, reason: str) -> "StageOutcome":
        return cls(stage, StageStatus.FAILED, reason=reason)

    @classmethod
    def skipped(cls, stage: str, reason: str) -> "StageOutcome":
        return cls(stage, StageStatus.SKIPPED, reason=reason)

    def log_line(self) -> str:
        if self.status == StageStatus.FAILED:
            return f"{self.stage} failed: {self.reason}"
        if self.status == StageStatus.SKIPPED:
            return f"{self.stage} skipped: {self.reason}"
        return self.message or f"{self.stage} complete."


@dataclass
class PipelineResult:
    job_id: str
    status: JobStatus
    created_candidates: int = 0
    created_contacts: int = 0
    counters: JobCounters = field(default_factory=JobCounters)  # this run only
    stage_outcomes: List[StageOutcome] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """True when the run failed or any of its stages failed."""
        return self.status == JobStatus.FAILED or any(
            o.status == StageStatus.FAILED for o in self.stage_outcomes
        )


# ============================================================================
# PER-POOL SERIALIZATION
# ============================================================================

class PoolLockRegistry:
    """One asyncio.Lock per pool, so runs against the same pool never overlap in-process."""

    def __init__(self):
        # asyncio locks belong to one event loop; keep a table per loop
        self._locks = weakref.WeakKeyDictionary()

    def lock_for(self, pool_id: Any) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._locks.setdefault(loop, {})
        key = str(pool_id)
        if key not in locks:
            locks[key] = asyncio.Lock()
        return locks[key]


pool_locks = PoolLockRegistry()


# ============================================================================
# ORCHESTRATOR
# ============================================================================

SERP_STAGE = "SERP scraping"
ENRICHMENT_STAGE = "Company enrichment"
SCORING_STAGE = "ICP scoring"


class LeadGenPipelineOrchestrator:
    """
    Orchestrates one lead-gen job run.

    Collaborators are optional; a missing one makes its stage SKIPPED
    (classic mode) or the run FAILED (agent mode).
    """

    def __init__(
        self,
        db: Session,
        serp_provider: Optional[SerpSearchProvider] = None,
        enrichment_provider: Optional[EnrichmentProvider] = None,
        agent: Optional[AutonomousAgent] = None,
        policy: ScoringPolicy = DEFAULT_POLICY,
        locks: Optional[PoolLockRegistry] = None,
    ):
        self.db = db
        self.serp_provider = serp_provider
        self.enrichment_provider = enrichment_provider
        self.agent = agent
        self.policy = policy
        self.locks = locks or pool_locks

        self.jobs = LeadGenJobRepository(db)
        self.pools = LeadPoolRepository(db)
        self.candidates = CandidateRepository(db)

    async def run_pipeline(self, job_id: Any, user_id: str, force: bool = False) -> PipelineResult:
        """
        Run a job to a terminal state.

        Raises:
            JobNotFoundError: no job with this id
            JobAlreadyRunningError: job is RUNNING and force is False
        """
        job = self.jobs.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        async with self.locks.lock_for(job.pool_id):
            self.db.refresh(job)
            if job.status == JobStatus.RUNNING.value and not force:
                raise JobAlreadyRunningError(job.id)

            pool = self.pools.get_by_id(job.pool_id)
            providers = self.jobs.get_providers(job)

            self.jobs.mark_running(job)
            self.db.commit()
            logger.info(f"Starting lead-gen job {job.id} (pool={job.pool_id}, agent={providers.agentic_ai})")

            try:
                if providers.agentic_ai:
                    return await self._run_agent_branch(job, pool, user_id)
                return await self._run_classic_branch(job, pool, user_id, providers)
            except Exception as e:
                # Infrastructure failure outside any stage (e.g. a failed commit)
                logger.exception(f"Lead-gen job {job.id} aborted")
                return self._abort(job, e)

    # ------------------------------------------------------------------
    # Branch A: autonomous agent
    # ------------------------------------------------------------------

    async def _run_agent_branch(self, job: LeadGenJob, pool: Optional[LeadPool], user_id: str) -> PipelineResult:
        icp_raw = (pool.icp_config if pool else None) or {}
        icp = self._load_icp(job, pool)
        target = (icp.limits.max_companies if icp else None) or settings.AGENT_DEFAULT_TARGET_COMPANIES

        if self.agent is None:
            return self._finish_failed(job, "Agentic AI failed: no autonomous agent configured")

        try:
            raw = await self.agent.run(
                job_id=str(job.id),
                user_id=user_id,
                icp_config=icp_raw,
                pool_id=str(job.pool_id),
                target_count=target,
            )
            outcome = AgentRunResult.coerce(raw)
        except Exception as e:
            logger.exception(f"Agent run failed for job {job.id}")
            self.db.rollback()
            return self._finish_failed(job, f"Agentic AI failed: {e}")

        delta = JobCounters(
            companies_found=outcome.companies_saved,
            candidates_created=outcome.companies_saved,
            contacts_created=outcome.contacts_saved,
            agent_iterations=outcome.iterations,
        )
        self.jobs.merge_counters(job, delta)
        self.jobs.append_log(
            job,
            f"Agentic AI complete: {outcome.companies_saved} companies, {outcome.contacts_saved} contacts"
        )
        self.jobs.mark_finished(job, JobStatus.SUCCESS)
        self.db.commit()

        logger.info(f"✅ Job {job.id} complete (agent): {outcome.iterations} iterations")
        return PipelineResult(
            job_id=str(job.id),
            status=JobStatus.SUCCESS,
            created_candidates=delta.candidates_created,
            created_contacts=delta.contacts_created,
            counters=delta,
        )

    # ------------------------------------------------------------------
    # Branch B: classic staged pipeline
    # ------------------------------------------------------------------

    async def _run_classic_branch(
        self,
        job: LeadGenJob,
        pool: Optional[LeadPool],
        user_id: str,
        providers: JobProviders,
    ) -> PipelineResult:
        outcomes = []

        serp = await self._run_serp_stage(job, user_id, providers)
        self._checkpoint(job, serp)
        outcomes.append(serp)

        enrichment = await self._run_enrichment_stage(job, user_id, providers, serp)
        self._checkpoint(job, enrichment)
        outcomes.append(enrichment)

        scoring = self._run_scoring_stage(job, pool)
        self._checkpoint(job, scoring)
        outcomes.append(scoring)

        totals = JobCounters()
        for outcome in outcomes:
            totals = totals.merged_with(outcome.counters)

        self.jobs.append_log(
            job,
            f"LeadGen pipeline complete: domains={totals.companies_found}, "
            f"candidates={totals.candidates_created}, enriched={totals.companies_enriched}, "
            f"contacts={totals.contacts_created}, sourceEvents={totals.source_events}."
        )
        self.jobs.mark_finished(job, JobStatus.SUCCESS)
        self.db.commit()

        result = PipelineResult(
            job_id=str(job.id),
            status=JobStatus.SUCCESS,
            created_candidates=totals.candidates_created,
            created_contacts=totals.contacts_created,
            counters=totals,
            stage_outcomes=outcomes,
        )
        if result.has_errors:
            logger.warning(f"Job {job.id} completed with stage errors")
        else:
            logger.info(f"✅ Job {job.id} complete: {totals.candidates_created} candidates")
        return result

    async def _run_serp_stage(self, job: LeadGenJob, user_id: str, providers: JobProviders) -> StageOutcome:
        if not providers.serp:
            return StageOutcome.skipped(SERP_STAGE, "disabled for this job")
        if self.serp_provider is None:
            return StageOutcome.skipped(SERP_STAGE, "no SERP provider configured")

        try:
            result = SerpSearchResult.coerce(
                await self.serp_provider.search(job_id=str(job.id), user_id=user_id)
            )
        except Exception as e:
            logger.exception(f"SERP stage failed for job {job.id}")
            self.db.rollback()
            return StageOutcome.failed(SERP_STAGE, str(e))

        counters = JobCounters(
            companies_found=len(result.unique_domains),
            candidates_created=result.created_candidates,
            source_events=result.source_events,
        )
        return StageOutcome.succeeded(
            SERP_STAGE,
            counters,
            f"SERP search: {len(result.unique_domains)} domains, "
            f"{result.created_candidates} candidates, {result.source_events} source events.",
            unique_domains=result.unique_domains,
        )

    async def _run_enrichment_stage(
        self,
        job: LeadGenJob,
        user_id: str,
        providers: JobProviders,
        serp: StageOutcome,
    ) -> StageOutcome:
        if not providers.crawler:
            return StageOutcome.skipped(ENRICHMENT_STAGE, "disabled for this job")
        if self.enrichment_provider is None:
            return StageOutcome.skipped(ENRICHMENT_STAGE, "no enrichment provider configured")
        if serp.counters.candidates_created == 0:
            return StageOutcome.skipped(ENRICHMENT_STAGE, "no new candidates to enrich")

        try:
            result = EnrichmentOutcome.coerce(
                await self.enrichment_provider.enrich(
                    job_id=str(job.id),
                    limit=settings.ENRICHMENT_BATCH_LIMIT,
                    user_id=user_id,
                )
            )
        except Exception as e:
            logger.exception(f"Enrichment stage failed for job {job.id}")
            self.db.rollback()
            return StageOutcome.failed(ENRICHMENT_STAGE, str(e))

        counters = JobCounters(
            companies_enriched=result.enriched,
            enrichment_failed=result.failed,
            contacts_created=result.contacts_created,
        )
        return StageOutcome.succeeded(
            ENRICHMENT_STAGE,
            counters,
            f"Company enrichment: {result.enriched} enriched, {result.failed} failed.",
        )

    def _run_scoring_stage(self, job: LeadGenJob, pool: Optional[LeadPool]) -> StageOutcome:
        """Re-score every candidate in the pool, one at a time."""
        icp = self._load_icp(job, pool)
        if icp is None:
            return StageOutcome.skipped(SCORING_STAGE, "no ICP configured for this pool")
        if not icp.has_company_targeting():
            # Every company would score 0 and the blend would shrink stored scores
            return StageOutcome.skipped(SCORING_STAGE, "no ICP targeting configured")

        try:
            candidates = self.candidates.list_by_pool(job.pool_id)
        except Exception as e:
            logger.exception(f"Could not load candidates for pool {job.pool_id}")
            self.db.rollback()
            return StageOutcome.failed(SCORING_STAGE, str(e))

        rescored = 0
        failed = 0
        for candidate in candidates:
            candidate_id = candidate.id
            try:
                icp_score = calculate_company_icp_score(CompanyData.from_candidate(candidate), icp, self.policy)
                self.candidates.update_score(candidate, blend_scores(icp_score, candidate.score, self.policy))
                self.db.commit()
                rescored += 1
            except Exception:
                # Candidate keeps its previous score
                logger.exception(f"Failed to score candidate {candidate_id}")
                self.db.rollback()
                failed += 1

        return StageOutcome.succeeded(
            SCORING_STAGE,
            JobCounters(),
            f"ICP scoring: {rescored} candidates re-scored",
            rescored=rescored,
            failed=failed,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_icp(self, job: LeadGenJob, pool: Optional[LeadPool]) -> Optional[ICPConfig]:
        try:
            return self.pools.get_icp_config(pool)
        except ValidationError as e:
            logger.warning(f"Invalid ICP configuration on pool {job.pool_id}: {e}")
            return None

    def _checkpoint(self, job: LeadGenJob, outcome: StageOutcome) -> None:
        """Record one stage in the job log and counters, then commit."""
        level = "ERROR" if outcome.status == StageStatus.FAILED else None
        self.jobs.append_log(job, outcome.log_line(), level=level)
        if outcome.status == StageStatus.SUCCEEDED:
            self.jobs.merge_counters(job, outcome.counters)
        self.db.commit()

    def _finish_failed(self, job: LeadGenJob, msg: str) -> PipelineResult:
        self.jobs.append_log(job, msg, level="ERROR")
        self.jobs.mark_finished(job, JobStatus.FAILED)
        self.db.commit()
        return PipelineResult(job_id=str(job.id), status=JobStatus.FAILED)

    def _abort(self, job: LeadGenJob, error: Exception) -> PipelineResult:
        self.db.rollback()
        return self._finish_failed(job, f"Pipeline failed: {error}")


async def run_lead_gen_pipeline(
    db: Session,
    job_id: Any,
    user_id: str,
    serp_provider: Optional[SerpSearchProvider] = None,
    enrichment_provider: Optional[EnrichmentProvider] = None,
    agent: Optional[AutonomousAgent] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
    force: bool = False,
) -> PipelineResult:
    """Convenience entry point: build an orchestrator and run one job."""
    orchestrator = LeadGenPipelineOrchestrator(
        db,
        serp_provider=serp_provider,
        enrichment_provider=enrichment_provider,
        agent=agent,
        policy=policy,
    )
    return await orchestrator.run_pipeline(job_id, user_id, force=force)

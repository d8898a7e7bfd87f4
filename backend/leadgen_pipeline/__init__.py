"""
Lead-generation pipeline core.

Main components:
- services.normalization: edge normalizers and contact quality gates
- services.title_normalizer: title ladder / department / persona classifier
- services.link_ranker: crawl-order ranking with optional LLM refinement
- icp_engine: ICP fit scoring, exclusion and ranking
- services.pipeline_orchestrator: lead-gen job state machine

Usage:
    from leadgen_pipeline.services.pipeline_orchestrator import run_lead_gen_pipeline

    result = await run_lead_gen_pipeline(db, job_id="...", user_id="...", serp_provider=...)
"""

__version__ = "1.0.0"

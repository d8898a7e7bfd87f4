"""
Pydantic schemas shared by the pipeline, scoring engine and repositories.
"""
from leadgen_pipeline.schemas.icp import ICPConfig, ICPLimits
from leadgen_pipeline.schemas.candidate import CompanyData, ContactData, ContactInput, SanitizedContact
from leadgen_pipeline.schemas.job import JobCounters, JobLogEntry, JobProviders, JobStatus

__all__ = [
    "ICPConfig",
    "ICPLimits",
    "CompanyData",
    "ContactData",
    "ContactInput",
    "SanitizedContact",
    "JobCounters",
    "JobLogEntry",
    "JobProviders",
    "JobStatus",
]

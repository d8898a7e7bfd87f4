"""Pipeline services: normalization, classification, ranking, ingestion, orchestration."""

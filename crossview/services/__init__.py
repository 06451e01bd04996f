"""Application services: aggregation, story synthesis, enrichment, personalization and surveys."""

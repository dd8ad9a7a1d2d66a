"""Adapters connecting the ingestion engine to vendors, files and storage."""

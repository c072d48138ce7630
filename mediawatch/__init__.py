"""MediaWatch - regional news ingestion, AI enrichment and organization monitoring."""

__version__ = "0.1.0"

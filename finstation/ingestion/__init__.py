"""Ingestion: market-data provider client (FMP) for company actuals."""

"""Simulation framework: ledger, driver, analyzer, engine facade and CLI."""

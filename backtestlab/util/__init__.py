"""Shared helpers: indicators, condition checks, dates, data access, logging."""

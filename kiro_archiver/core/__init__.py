"""Core archival functionality for the Kiro archiver."""

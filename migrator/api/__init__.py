"""HTTP API for the migration builder."""

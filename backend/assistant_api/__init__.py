"""HTTP API for the production assistant."""

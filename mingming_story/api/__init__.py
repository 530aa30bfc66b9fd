"""HTTP API for Mingming Story."""

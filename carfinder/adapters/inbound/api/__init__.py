"""HTTP API for carfinder."""

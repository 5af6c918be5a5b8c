"""HTTP API for HealthTrack."""

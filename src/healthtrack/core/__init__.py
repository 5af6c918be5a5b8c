"""Cross-cutting infrastructure: structured logging and telemetry."""

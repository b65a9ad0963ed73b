"""Infrastructure layer - database access and telemetry."""

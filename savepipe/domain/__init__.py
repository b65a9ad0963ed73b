"""Domain layer - errors, entities and protocols."""

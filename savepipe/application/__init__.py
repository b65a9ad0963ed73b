"""Application layer - pipelines, result guard and conditions."""

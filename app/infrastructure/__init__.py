"""Infrastructure layer: Redis cache adapter and output-cache hooks."""

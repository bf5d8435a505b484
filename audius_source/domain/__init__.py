"""Domain layer: entities, reference classification and error types."""

"""Infrastructure layer - the HTTP surface over the domain services."""

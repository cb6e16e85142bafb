"""Infrastructure layer: adapters, stubs, observability and monitoring."""

"""Application layer: ports and async orchestration services."""

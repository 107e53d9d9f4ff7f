"""Application layer: ports, use cases, and the error-handler hook."""

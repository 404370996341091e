"""Application services (framework-agnostic use cases)."""

"""Live price dashboard backend for a single asset."""

"""API routes and dependency wiring."""

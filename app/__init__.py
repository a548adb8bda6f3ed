"""FastAPI application for the jigsaw assembly engine."""

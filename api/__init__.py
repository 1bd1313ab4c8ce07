"""FastAPI service exposing the dashboard core."""

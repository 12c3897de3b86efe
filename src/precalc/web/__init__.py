"""Web API (FastAPI) for the precalculus course site."""

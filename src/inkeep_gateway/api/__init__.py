"""FastAPI surface of the Inkeep Gateway."""

"""HTTP API — FastAPI server, narrative and context manifest."""

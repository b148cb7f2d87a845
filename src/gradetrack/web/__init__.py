"""Course API server (FastAPI) backing the remote adapter."""

"""HTTP API routers for the Plugstore backend."""

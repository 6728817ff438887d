"""Bearer-token authentication and authorization policy."""

"""Local CORS proxy server."""

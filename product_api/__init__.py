"""Product catalogue REST API."""

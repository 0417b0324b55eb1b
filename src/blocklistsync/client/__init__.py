"""Client module - HTTP transport, domain cache, and persistence."""

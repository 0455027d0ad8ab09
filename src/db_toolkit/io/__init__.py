"""I/O ring: everything that talks to a live database connection."""

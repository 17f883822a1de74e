"""HTTP API for pocket-drive."""

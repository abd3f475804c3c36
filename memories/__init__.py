"""Face clustering and people memories service."""

"""Back-office cache coordination service."""

"""Services backing the puzzle API."""

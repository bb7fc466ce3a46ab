"""Languages and decks."""

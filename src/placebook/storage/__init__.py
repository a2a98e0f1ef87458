"""SQLite place store and its schema migrations."""

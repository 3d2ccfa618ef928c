"""Infrastructure: schema migrations."""

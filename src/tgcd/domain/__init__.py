"""Domain value objects and errors."""

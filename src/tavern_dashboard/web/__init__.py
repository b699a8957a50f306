"""Server-rendered tavern pages."""

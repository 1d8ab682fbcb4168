"""Theory practice application packages."""

"""Language server for minigraph query documents."""

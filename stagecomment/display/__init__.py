"""Terminal display of build ledgers (Rich)."""

"""Shell command handlers."""

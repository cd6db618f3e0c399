"""Interactive hnetsh shell."""

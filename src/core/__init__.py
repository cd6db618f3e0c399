"""Core graph model, subnet propagation and editor pipeline."""

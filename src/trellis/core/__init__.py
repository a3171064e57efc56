"""Core model, configuration, state and reconciliation for Trellis."""

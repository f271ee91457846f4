"""Core types, configuration and errors shared by every component."""

"""Core value types shared across the verification chain."""

"""Reusable guard helpers for slash commands."""

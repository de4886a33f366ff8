"""Tubely video upload service."""

"""Ports, shared app state and background task handling."""

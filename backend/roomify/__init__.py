"""Roomify workflow core: floor plan intake, handoff, and 3D render sessions."""

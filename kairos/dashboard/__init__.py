"""Textual front end for the Kairos dashboard."""

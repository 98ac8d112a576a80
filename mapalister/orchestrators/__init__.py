"""Orchestration of the upload → validate → extract → apply → present flow,
and of exporting the current document back out.
"""

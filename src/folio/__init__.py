"""Folio - REST backend for the student portfolio platform."""

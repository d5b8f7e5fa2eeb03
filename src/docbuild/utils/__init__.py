"""Utility helpers for docbuild."""

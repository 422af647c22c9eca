"""Authorisation helpers."""

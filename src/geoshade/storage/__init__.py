"""Persistence client for the selections backend."""

"""Filesystem helpers shared by the sender and the receivers."""

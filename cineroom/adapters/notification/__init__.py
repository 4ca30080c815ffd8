"""Notification adapters for telling creators and spectators what happened."""

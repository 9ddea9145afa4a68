"""Classify commits and recommend releases for each package in a workspace."""

"""Test suite for the CinéRoom booking service."""

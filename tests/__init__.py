"""Tests for the Crew Schedule integration."""

"""Tests for lgtv_volume."""

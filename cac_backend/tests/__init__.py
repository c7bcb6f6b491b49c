"""Test suite for the CAC Calculator backend."""

"""Padhlo entitlement and usage-quota engine."""

"""Presentation: read-only text views over the parking service"""

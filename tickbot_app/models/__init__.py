"""Data models shared between the feature engine, engine and publishers"""

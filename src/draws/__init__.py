"""Seeding, bracket generation, result progression and standings for multi-sport events."""

"""Turn-based combat resolution engine for D&D 5e style encounters."""

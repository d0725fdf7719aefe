"""MoodMate: affect-aware chat backend."""

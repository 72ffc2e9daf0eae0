"""Habit Lens: template-driven habit tracking with LLM analysis."""

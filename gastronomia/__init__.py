"""Gastronom.IA backend: recipe generation and chef chat over an LLM gateway."""

__version__ = "0.1.0"

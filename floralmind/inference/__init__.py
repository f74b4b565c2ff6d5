"""Prompt context for the AI query agent."""

from floralmind.inference.context import DataContextBuilder

__all__ = ["DataContextBuilder"]

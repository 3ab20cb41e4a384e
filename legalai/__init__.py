"""LegalAI - streaming chat relay and client for an Indian-law assistant"""

__version__ = "1.0.0"

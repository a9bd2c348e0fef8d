"""
MediLex AI - Medical Term Lookup Assistant

Looks up a medical term with a generative-AI provider and returns a simple
definition, key points, verifiable sources and an illustrative image, then
supports a follow-up chat about that term.

IMPORTANT: This is an educational tool. It must NEVER replace a doctor.
"""

__version__ = "1.0.0"
__author__ = "MediLex AI Team"

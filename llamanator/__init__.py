"""
llamanator: authenticated prompt-template gateway for Ollama-style backends
"""
__version__ = "0.1.0"

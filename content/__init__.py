"""content

Prompt building, directive contracts and LLM providers.
"""

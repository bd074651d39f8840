"""core

Domain model + economy rules. No Streamlit / LLM imports in here.
"""

API_VERSION = "core-wargame-v1"

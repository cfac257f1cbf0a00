"""
Gemini relay package.

Provides:
- A relay handler that forwards prompts to the Gemini API with search grounding
- A FastAPI app exposing the handler over HTTP
"""

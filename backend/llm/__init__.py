"""
Inference layer.

Responsibilities:
- Manage retriever / Groq configuration and credentials.
- Send prompts to the external generation service.
- Pull the answer text out of the service reply.
- Classify network, timeout and protocol failures as ``InferenceError``.
"""

"""
Recommendation job pipeline.

Responsibilities:
- Accept a filter set and an optional uploaded statement.
- Build the generation prompt and query the inference service.
- Parse the model's reply into ranked card recommendations.
- Track each request as a pollable job and keep a history of results.
"""

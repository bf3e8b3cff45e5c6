"""Core generation pipeline: canon policy, prompt building, output guards, model adapter."""
